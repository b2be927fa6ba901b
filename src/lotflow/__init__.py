from lotflow.core import (
    ClosedPosition,
    ExecutionMatchPolicy,
    Fill,
    LiveTradingRecordSnapshot,
    MatchingPolicy,
    OpenPosition,
    PositionLot,
    Trade,
    TradeType,
    validate_fill,
)
from lotflow.cost import CostModel, RecordedTradeCostModel, ZeroCostModel
from lotflow.ledger import LiveTradingRecord, MultiTradingRecord, PositionBook
import lotflow.config as config
import lotflow.core as core
import lotflow.cost as cost
import lotflow.data as data
import lotflow.ledger as ledger
import lotflow.matching as matching
import lotflow.utils as utils


__all__ = [
    "config",
    "core",
    "cost",
    "data",
    "ledger",
    "matching",
    "utils",
    "ClosedPosition",
    "CostModel",
    "ExecutionMatchPolicy",
    "Fill",
    "LiveTradingRecord",
    "LiveTradingRecordSnapshot",
    "MatchingPolicy",
    "MultiTradingRecord",
    "OpenPosition",
    "PositionBook",
    "PositionLot",
    "Trade",
    "RecordedTradeCostModel",
    "TradeType",
    "ZeroCostModel",
    "validate_fill",
]
