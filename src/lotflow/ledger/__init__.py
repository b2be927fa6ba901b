"""Position books and trading records built on the lot matcher."""

from lotflow.ledger.live_record import LiveTradingRecord
from lotflow.ledger.multi_record import MultiTradingRecord
from lotflow.ledger.position_book import PositionBook

__all__ = [
    "LiveTradingRecord",
    "MultiTradingRecord",
    "PositionBook",
]
