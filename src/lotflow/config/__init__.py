"""Configuration loading for lotflow ledgers.

Example:
    >>> from lotflow.config import LedgerSettings, build_live_record, load_ledger_config
    >>> settings = LedgerSettings.from_dict(load_ledger_config("btc_live", conf_path="./conf/base"))
    >>> record = build_live_record(settings)
"""

from lotflow.config.loader import (
    list_ledgers,
    load_ledger_config,
    load_yaml,
    merge_defaults,
)
from lotflow.config.settings import (
    LedgerSettings,
    StoreSettings,
    build_live_record,
    build_multi_record,
    build_store,
)

__all__ = [
    "LedgerSettings",
    "StoreSettings",
    "build_live_record",
    "build_multi_record",
    "build_store",
    "list_ledgers",
    "load_ledger_config",
    "load_yaml",
    "merge_defaults",
]
