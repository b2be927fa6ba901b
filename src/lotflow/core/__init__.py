from .containers import (
    ClosedPosition,
    Fill,
    LiveTradingRecordSnapshot,
    OpenPosition,
    PositionLot,
    Trade,
    validate_fill,
)
from .enums import ExecutionMatchPolicy, MatchingPolicy, TradeType
from .exceptions import (
    ConfigurationError,
    InsufficientOpenAmountError,
    InvalidFillError,
    InvalidParameterError,
    LedgerStateError,
    LotflowError,
    LotSequenceError,
    NoOpenPositionError,
    SpecificLotMismatchError,
)


__all__ = [
    "ClosedPosition",
    "Fill",
    "LiveTradingRecordSnapshot",
    "OpenPosition",
    "PositionLot",
    "Trade",
    "validate_fill",
    "ExecutionMatchPolicy",
    "MatchingPolicy",
    "TradeType",
    "ConfigurationError",
    "InsufficientOpenAmountError",
    "InvalidFillError",
    "InvalidParameterError",
    "LedgerStateError",
    "LotflowError",
    "LotSequenceError",
    "NoOpenPositionError",
    "SpecificLotMismatchError",
]
