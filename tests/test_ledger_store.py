"""Tests for InMemoryLedgerStore and SqliteLedgerStore."""

import pytest

from lotflow.core.enums import TradeType
from lotflow.data.ledger_store import SqliteLedgerStore
from lotflow.ledger.live_record import LiveTradingRecord

from fills import D, buy, sell


class TestRecords:
    def test_load_missing(self, ledger_store):
        assert ledger_store.load_record("nope") is None

    def test_save_and_load(self, ledger_store, filled_record):
        ledger_store.save_record("btc", filled_record)
        loaded = ledger_store.load_record("btc")
        assert isinstance(loaded, LiveTradingRecord)
        assert loaded.snapshot() == filled_record.snapshot()

    def test_loaded_record_is_independent(self, ledger_store, filled_record):
        ledger_store.save_record("btc", filled_record)
        loaded = ledger_store.load_record("btc")
        loaded.record_fill(sell(130, 2))
        assert not filled_record.is_flat
        assert not ledger_store.load_record("btc").is_flat

    def test_upsert_overwrites(self, ledger_store, filled_record):
        ledger_store.save_record("btc", LiveTradingRecord(TradeType.SELL))
        ledger_store.save_record("btc", filled_record)
        assert ledger_store.load_record("btc").trade_type is TradeType.BUY
        assert ledger_store.list_records() == ["btc"]

    def test_list_records_sorted(self, ledger_store, live_record):
        for rid in ["eth", "btc", "sol"]:
            ledger_store.save_record(rid, live_record)
        assert ledger_store.list_records() == ["btc", "eth", "sol"]

    def test_restored_record_keeps_matching(self, ledger_store, filled_record):
        ledger_store.save_record("btc", filled_record)
        loaded = ledger_store.load_record("btc")
        closed = loaded.record_fill(sell(130, 1))
        assert closed[0].entry.price == D(100)
        assert closed[0].entry_sequence == 0


class TestSnapshots:
    def test_load_missing(self, ledger_store):
        assert ledger_store.load_snapshot("nope") is None

    def test_save_and_load(self, ledger_store, filled_record):
        snap = filled_record.snapshot()
        ledger_store.save_snapshot("btc", snap)
        assert ledger_store.load_snapshot("btc") == snap

    def test_latest_wins(self, ledger_store, filled_record):
        ledger_store.save_snapshot("btc", filled_record.snapshot())
        filled_record.record_fill(sell(130, 2))
        ledger_store.save_snapshot("btc", filled_record.snapshot())
        assert ledger_store.load_snapshot("btc").is_flat


class TestSqlitePersistence:
    def test_survives_reopen(self, tmp_path, filled_record):
        path = str(tmp_path / "ledger.sqlite")
        store = SqliteLedgerStore(path)
        store.init()
        store.save_record("btc", filled_record)
        store.close()

        store = SqliteLedgerStore(path)
        store.init()
        try:
            loaded = store.load_record("btc")
            assert loaded.total_fees == D("0.6")
            assert store.list_records() == ["btc"]
        finally:
            store.close()

    def test_init_is_idempotent(self, tmp_path):
        store = SqliteLedgerStore(str(tmp_path / "ledger.sqlite"))
        store.init()
        store.init()
        assert store.list_records() == []
        store.close()


@pytest.mark.parametrize("policy", ["fifo", "lifo", "avg_cost", "specific_lot"])
def test_policy_round_trip(ledger_store, policy):
    record = LiveTradingRecord(TradeType.BUY, policy)
    record.record_fill(buy(100, 2, correlation_id="a"))
    record.record_fill(buy(110, 2, correlation_id="b"))
    record.record_fill(sell(120, 1, correlation_id="b"))
    ledger_store.save_record("r", record)
    assert ledger_store.load_record("r").snapshot() == record.snapshot()
