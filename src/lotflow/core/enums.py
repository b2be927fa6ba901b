from enum import Enum


class TradeType(str, Enum):
    """Side of an execution."""
    BUY = "BUY"
    SELL = "SELL"

    @property
    def complement(self) -> "TradeType":
        return TradeType.SELL if self is TradeType.BUY else TradeType.BUY


class ExecutionMatchPolicy(str, Enum):
    """Lot-selection policy used when an exit fill closes open lots."""
    FIFO = "fifo"
    LIFO = "lifo"
    AVG_COST = "avg_cost"
    SPECIFIC_LOT = "specific_lot"


class MatchingPolicy(str, Enum):
    """Exit ordering for records that keep several independent positions."""
    FIFO = "fifo"
    LIFO = "lifo"

    def to_execution_policy(self) -> ExecutionMatchPolicy:
        return ExecutionMatchPolicy(self.value)
