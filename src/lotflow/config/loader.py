"""Ledger configuration files.

Ledger configs live under a conf directory::

    conf/base/
      parameters/common.yml    # ``defaults`` shared by every ledger
      ledgers/<ledger_id>.yml  # per-ledger overrides (.yml or .yaml)

A ledger config is flat apart from mapping sections such as ``store``, so
defaults and overrides are merged key by key, and sections one level down.
String values may reference environment variables as ``${VAR}`` anywhere in
the string. ``{ledger_id}`` in the store path is replaced by the ledger id.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from lotflow.core.exceptions import ConfigurationError

CONF_PATH_ENV = "LOTFLOW_CONF_PATH"

_SUFFIXES = (".yml", ".yaml")
_ENV_VAR = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def load_yaml(path: Path | str) -> dict[str, Any]:
    """Load a YAML mapping. An empty file is an empty mapping.

    Raises:
        FileNotFoundError: The file does not exist.
        ConfigurationError: The document is not a mapping.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"YAML file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping, got {type(data).__name__}")
    return data


def merge_defaults(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Apply a ledger's overrides on top of the shared defaults.

    Sections present on both sides as mappings (``store``) are merged key by
    key; any other override replaces the default. Neither input is modified.

    Example:
        >>> merge_defaults({"kind": "live", "store": {"type": "sqlite", "path": "a"}},
        ...                {"store": {"path": "b"}})
        {'kind': 'live', 'store': {'type': 'sqlite', 'path': 'b'}}
    """
    merged = dict(defaults)
    for key, value in overrides.items():
        section = merged.get(key)
        if isinstance(section, dict) and isinstance(value, dict):
            merged[key] = {**section, **value}
        else:
            merged[key] = value
    return merged


def load_ledger_config(
    ledger_id: str,
    conf_path: Path | str | None = None,
    *,
    resolve_env: bool = True,
) -> dict[str, Any]:
    """Load a ledger configuration by ID.

    Args:
        ledger_id: Ledger identifier, the file stem under ``ledgers/``.
        conf_path: Conf directory. Defaults to ``$LOTFLOW_CONF_PATH``, then
            ``./conf/base``.
        resolve_env: Whether to expand ``${VAR}`` references.

    Returns:
        Merged configuration with ``ledger_id`` set.

    Raises:
        FileNotFoundError: No config file for ``ledger_id``.
        ConfigurationError: A config file or its ``defaults`` is not a mapping.

    Example:
        >>> config = load_ledger_config("btc_live", conf_path="./conf/base")
        >>> config["ledger_id"]
        'btc_live'
    """
    conf = _conf_dir(conf_path)
    ledger_file = _ledger_file(conf, ledger_id)
    if ledger_file is None:
        raise FileNotFoundError(f"Ledger config not found: {conf / 'ledgers' / ledger_id}.yml")

    common_file = conf / "parameters" / "common.yml"
    defaults: Any = {}
    if common_file.exists():
        defaults = load_yaml(common_file).get("defaults") or {}
    if not isinstance(defaults, dict):
        raise ConfigurationError(f"{common_file}: 'defaults' must be a mapping")

    config = merge_defaults(defaults, load_yaml(ledger_file))
    config["ledger_id"] = ledger_id
    if resolve_env:
        config = _expand_env(config)

    store = config.get("store")
    if isinstance(store, dict) and isinstance(store.get("path"), str):
        config["store"] = {**store, "path": store["path"].replace("{ledger_id}", ledger_id)}

    logger.info(f"Loaded ledger config {ledger_id} from {ledger_file}")
    return config


def list_ledgers(conf_path: Path | str | None = None) -> list[str]:
    """Ledger IDs with a config file, sorted."""
    ledgers_dir = _conf_dir(conf_path) / "ledgers"
    if not ledgers_dir.is_dir():
        logger.warning(f"Ledgers directory not found: {ledgers_dir}")
        return []
    return sorted({f.stem for f in ledgers_dir.iterdir() if f.suffix in _SUFFIXES})


def _conf_dir(conf_path: Path | str | None) -> Path:
    if conf_path is None:
        conf_path = os.environ.get(CONF_PATH_ENV) or Path.cwd() / "conf" / "base"
    return Path(conf_path)


def _ledger_file(conf: Path, ledger_id: str) -> Path | None:
    for suffix in _SUFFIXES:
        path = conf / "ledgers" / f"{ledger_id}{suffix}"
        if path.exists():
            return path
    return None


def _expand_env(value: Any) -> Any:
    # unset variables are left as written
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    if isinstance(value, str):
        return _ENV_VAR.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    return value
