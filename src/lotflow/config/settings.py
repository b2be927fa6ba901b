"""Typed ledger settings and record factories."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from loguru import logger

from lotflow.core.enums import ExecutionMatchPolicy, MatchingPolicy, TradeType
from lotflow.core.exceptions import InvalidParameterError
from lotflow.cost import get_cost_model
from lotflow.data.ledger_store import InMemoryLedgerStore, LedgerStore, SqliteLedgerStore
from lotflow.ledger import LiveTradingRecord, MultiTradingRecord


@dataclass
class StoreSettings:
    """Ledger store configuration.

    Attributes:
        type: 'memory' or 'sqlite'
        path: Database file for sqlite
    """

    type: str = "memory"
    path: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> StoreSettings:
        """Create from dict."""
        data = data or {}
        return cls(type=str(data.get("type", "memory")).lower(), path=data.get("path"))


@dataclass
class LedgerSettings:
    """Ledger configuration.

    Attributes:
        ledger_id: Ledger identifier
        name: Record label (defaults to ledger_id)
        kind: 'live' for LiveTradingRecord, 'multi' for MultiTradingRecord
        trade_type: Opening side; None lets the first fill decide (live only)
        match_policy: fifo, lifo, avg_cost or specific_lot (multi: fifo/lifo)
        transaction_cost_model: Built-in cost model name (multi only; live
            records always charge the recorded fees)
        holding_cost_model: Built-in cost model name
        start_index: First index covered by the record
        end_index: Last index covered by the record
        store: Store configuration
    """

    ledger_id: str
    name: str | None = None
    kind: str = "live"
    trade_type: TradeType | None = TradeType.BUY
    match_policy: str = ExecutionMatchPolicy.FIFO.value
    transaction_cost_model: str = "zero"
    holding_cost_model: str = "zero"
    start_index: int | None = None
    end_index: int | None = None
    store: StoreSettings = field(default_factory=StoreSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerSettings:
        """Create from dict. Unknown keys are logged and ignored."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning(f"Ignoring unknown ledger config keys: {', '.join(unknown)}")

        ledger_id = data.get("ledger_id")
        if not ledger_id:
            raise InvalidParameterError("ledger_id", ledger_id, "is required")

        kind = str(data.get("kind", "live")).lower()
        if kind not in ("live", "multi"):
            raise InvalidParameterError("kind", kind, "unknown record kind", hint="Use 'live' or 'multi'")

        return cls(
            ledger_id=ledger_id,
            name=data.get("name"),
            kind=kind,
            trade_type=_parse_trade_type(data.get("trade_type", TradeType.BUY.value)),
            match_policy=str(data.get("match_policy", ExecutionMatchPolicy.FIFO.value)).lower(),
            transaction_cost_model=str(data.get("transaction_cost_model", "zero")).lower(),
            holding_cost_model=str(data.get("holding_cost_model", "zero")).lower(),
            start_index=data.get("start_index"),
            end_index=data.get("end_index"),
            store=StoreSettings.from_dict(data.get("store")),
        )

    @property
    def record_name(self) -> str:
        return self.name or self.ledger_id


def _parse_trade_type(value: Any) -> TradeType | None:
    if value is None:
        return None
    try:
        return TradeType(str(value).upper())
    except ValueError as e:
        raise InvalidParameterError("trade_type", value, "unknown trade type", hint="Use BUY, SELL or null") from e


def _parse_policy(enum: type[ExecutionMatchPolicy] | type[MatchingPolicy], value: str):
    try:
        return enum(value)
    except ValueError as e:
        raise InvalidParameterError(
            "match_policy",
            value,
            f"not supported by {enum.__name__}",
            hint=f"Use one of: {', '.join(p.value for p in enum)}",
        ) from e


def build_live_record(settings: LedgerSettings) -> LiveTradingRecord:
    """Create an empty LiveTradingRecord from settings."""
    return LiveTradingRecord(
        settings.trade_type,
        _parse_policy(ExecutionMatchPolicy, settings.match_policy),
        get_cost_model(settings.holding_cost_model),
        name=settings.record_name,
        start_index=settings.start_index,
        end_index=settings.end_index,
    )


def build_multi_record(settings: LedgerSettings) -> MultiTradingRecord:
    """Create an empty MultiTradingRecord from settings."""
    if settings.trade_type is None:
        raise InvalidParameterError("trade_type", None, "multi records need a fixed opening side")
    return MultiTradingRecord(
        settings.trade_type,
        _parse_policy(MatchingPolicy, settings.match_policy),
        get_cost_model(settings.transaction_cost_model),
        get_cost_model(settings.holding_cost_model),
        name=settings.record_name,
        start_index=settings.start_index,
        end_index=settings.end_index,
    )


def build_store(settings: LedgerSettings) -> LedgerStore:
    """Create and initialise the configured ledger store."""
    store_settings = settings.store
    if store_settings.type == "memory":
        store: LedgerStore = InMemoryLedgerStore()
    elif store_settings.type == "sqlite":
        if not store_settings.path:
            raise InvalidParameterError("store.path", None, "sqlite store needs a path")
        Path(store_settings.path).parent.mkdir(parents=True, exist_ok=True)
        store = SqliteLedgerStore(store_settings.path)
    else:
        raise InvalidParameterError("store.type", store_settings.type, "unknown store", hint="Use 'memory' or 'sqlite'")
    store.init()
    return store
