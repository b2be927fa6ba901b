"""Data containers for lotflow.

Immutable value types for fills, open lots, closed positions, aggregated
open positions, order-level trades and record snapshots.
"""

from lotflow.core.containers.fill import Fill, validate_fill
from lotflow.core.containers.lot import PositionLot
from lotflow.core.containers.open_position import OpenPosition
from lotflow.core.containers.position import ClosedPosition
from lotflow.core.containers.snapshot import LiveTradingRecordSnapshot
from lotflow.core.containers.trade import Trade

__all__ = [
    "ClosedPosition",
    "Fill",
    "LiveTradingRecordSnapshot",
    "OpenPosition",
    "PositionLot",
    "Trade",
    "validate_fill",
]
