"""Shared fixtures for lotflow tests."""

import pytest
from loguru import logger

from fills import buy, sell


@pytest.fixture
def fifo_book():
    """Empty long FIFO book."""
    from lotflow.core.enums import ExecutionMatchPolicy, TradeType
    from lotflow.ledger.position_book import PositionBook

    return PositionBook(TradeType.BUY, ExecutionMatchPolicy.FIFO)


@pytest.fixture
def live_record():
    """Empty long FIFO live record."""
    from lotflow.core.enums import ExecutionMatchPolicy, TradeType
    from lotflow.ledger.live_record import LiveTradingRecord

    return LiveTradingRecord(TradeType.BUY, ExecutionMatchPolicy.FIFO, name="test")


@pytest.fixture
def filled_record(live_record):
    """Live record with two open lots and one partial exit."""
    live_record.record_fill(buy(100, 2, fee="0.2", order_id="o-1", minutes=0))
    live_record.record_fill(buy(110, 1, fee="0.1", order_id="o-2", minutes=1))
    live_record.record_fill(sell(120, 1, fee="0.3", order_id="o-3", minutes=2))
    return live_record


@pytest.fixture(params=["memory", "sqlite"])
def ledger_store(request, tmp_path):
    """Initialised ledger store, one per backend."""
    from lotflow.data.ledger_store import InMemoryLedgerStore, SqliteLedgerStore

    if request.param == "memory":
        store = InMemoryLedgerStore()
    else:
        store = SqliteLedgerStore(str(tmp_path / "ledger.sqlite"))
    store.init()
    yield store
    store.close()


@pytest.fixture
def log_messages():
    """Messages logged at WARNING and above while the test runs."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)
