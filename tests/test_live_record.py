"""Tests for LiveTradingRecord."""

import pickle
import threading
from dataclasses import FrozenInstanceError

import polars as pl
import pytest
from loguru import logger

from lotflow.core.containers.fill import Fill
from lotflow.core.containers.trade import Trade
from lotflow.core.enums import ExecutionMatchPolicy as P
from lotflow.core.enums import TradeType
from lotflow.core.exceptions import (
    InvalidFillError,
    InvalidParameterError,
    NoOpenPositionError,
)
from lotflow.cost import CostModel, RecordedTradeCostModel, ZeroCostModel
from lotflow.data.ledger_store import record_from_json, snapshot_from_json, to_json
from lotflow.ledger.live_record import LiveTradingRecord

from fills import D, T0, buy, sell


class FlatHoldingCost(CostModel):
    """One unit of holding cost per position."""

    name = "flat"

    def calculate(self, position, final_index=None):
        return D(1)


class TestRecordFill:
    def test_entry_then_exit(self, live_record):
        assert live_record.record_fill(buy(100, 1, fee="0.1")) == []
        closed = live_record.record_fill(sell(105, 1, fee="0.1"))
        assert len(closed) == 1
        assert closed[0].profit == D("4.8")
        assert live_record.is_flat

    def test_transaction_costs_are_recorded_fees(self, live_record):
        assert isinstance(live_record.transaction_cost_model, RecordedTradeCostModel)

    def test_index_resolution(self, live_record):
        live_record.record_fill(buy(100, 1))
        live_record.record_fill(buy(100, 1, index=10))
        live_record.record_fill(buy(100, 1), index=4)
        live_record.record_fill(buy(100, 1))
        assert [t.index for t in live_record.get_trades()] == [0, 4, 10, 11]

    def test_negative_index(self, live_record):
        with pytest.raises(InvalidParameterError):
            live_record.record_fill(buy(100, 1), index=-1)

    def test_negative_fill_index_is_auto_assigned(self, live_record):
        live_record.record_fill(buy(100, 1, index=3))
        live_record.record_fill(buy(100, 1, index=-1))
        assert [t.index for t in live_record.get_trades()] == [3, 4]

    def test_non_numeric_values_rejected(self, live_record):
        with pytest.raises(InvalidFillError):
            live_record.enter(0, "abc", 1)
        assert live_record.is_flat
        assert live_record.get_trades() == ()

    def test_default_holding_model_per_record(self):
        first, second = LiveTradingRecord(), LiveTradingRecord()
        assert isinstance(first.holding_cost_model, ZeroCostModel)
        assert first.holding_cost_model is not second.holding_cost_model

    def test_invalid_fill(self, live_record):
        with pytest.raises(InvalidFillError):
            live_record.record_fill(buy(100, "NaN"))
        assert live_record.total_fees == 0
        assert live_record.get_trades() == ()

    def test_exit_side_while_flat(self, live_record):
        with pytest.raises(NoOpenPositionError):
            live_record.record_fill(sell(100, 1, fee="0.5"))
        assert live_record.total_fees == 0

    def test_short_record(self):
        record = LiveTradingRecord(TradeType.SELL)
        record.record_fill(sell(100, 1))
        position = record.record_fill(buy(95, 1))[0]
        assert position.gross_profit == D(5)

    def test_side_from_first_fill(self):
        record = LiveTradingRecord(None)
        record.record_fill(sell(100, 1))
        assert record.trade_type is TradeType.SELL
        record.record_fill(buy(90, 1))
        assert record.is_flat
        record.record_fill(buy(90, 1))
        assert record.trade_type is TradeType.BUY


class TestEnterExit:
    def test_enter_only_when_flat(self, live_record):
        assert live_record.enter(0, 100, 1)
        assert not live_record.enter(1, 100, 1)

    def test_exit_only_when_open(self, live_record):
        assert not live_record.exit(0, 100, 1)
        live_record.enter(1, 100, 2)
        assert live_record.exit(2, 110, 1)
        assert live_record.get_net_open_position().amount == D(1)

    def test_operate_alternates(self, live_record):
        live_record.operate(0, 100, 1)
        assert not live_record.is_flat
        live_record.operate(1, 110, 1)
        assert live_record.is_flat
        assert live_record.get_positions()[0].gross_profit == D(10)


class TestRecordTrade:
    def test_single_execution(self, live_record):
        trade = Trade(TradeType.BUY, price=100, amount=2, index=5, order_id="o-1")
        assert live_record.record_trade(trade) == []
        entry = live_record.last_entry
        assert (entry.index, entry.amount, entry.order_id) == (5, D(2), "o-1")

    def test_fills_replayed_in_order(self, live_record):
        live_record.record_fill(buy(100, 3, index=0))
        trade = Trade(
            TradeType.SELL,
            order_id="o-9",
            time=T0,
            fills=[
                Fill.of("SELL", 110, 1, fee="0.1", index=1),
                Fill.of("SELL", 111, 2, fee="0.2", index=2),
            ],
        )
        closed = live_record.record_trade(trade)

        assert [(p.exit.price, p.amount) for p in closed] == [(D(110), D(1)), (D(111), D(2))]
        assert all(p.exit.order_id == "o-9" and p.exit.time == T0 for p in closed)
        assert [p.exit_sequence for p in closed] == [1, 2]
        assert live_record.is_flat
        assert live_record.total_fees == D("0.3")

    def test_fills_take_trade_side(self, live_record):
        trade = Trade("buy", fills=(Fill.of("SELL", 100, 1),))
        live_record.record_trade(trade)
        assert live_record.get_net_open_position().amount == D(1)

    def test_unindexed_fills_are_auto_assigned(self, live_record):
        trade = Trade(TradeType.BUY, fills=(Fill.of("BUY", 100, 1, index=-1), Fill.of("BUY", 101, 1)))
        live_record.record_trade(trade)
        assert [t.index for t in live_record.get_trades()] == [0, 1]

    def test_rejected_fill_keeps_earlier_fills(self, live_record):
        trade = Trade(TradeType.BUY, fills=(Fill.of("BUY", 100, 1), Fill.of("BUY", 100, 0)))
        with pytest.raises(InvalidFillError):
            live_record.record_trade(trade)
        assert live_record.get_net_open_position().amount == D(1)


class TestCurrentPosition:
    def test_flat(self, live_record):
        assert live_record.get_current_position() is None

    def test_net_lots_folded(self, filled_record):
        current = filled_record.get_current_position()
        # one of the two units bought at 100 is still open, next to 1 @ 110
        assert current.side is TradeType.BUY
        assert current.amount == D(2)
        assert current.price == D(105)
        assert current.fee == D("0.2")
        assert current.index == 0
        assert current.time == T0

    def test_earliest_index(self, live_record):
        live_record.record_fill(buy(100, 1, index=4))
        live_record.record_fill(buy(100, 1, index=7))
        live_record.record_fill(sell(100, 1, index=8))
        assert live_record.get_current_position().index == 7


class TestReadViews:
    def test_total_fees(self, filled_record):
        assert filled_record.total_fees == D("0.6")

    def test_trades_ordered_by_index_then_sequence(self, filled_record):
        trades = filled_record.get_trades()
        assert [(t.side, t.index) for t in trades] == [
            (TradeType.BUY, 0),
            (TradeType.BUY, 0),
            (TradeType.BUY, 1),
            (TradeType.SELL, 2),
        ]
        assert sum(t.amount for t in trades if t.is_buy) == D(3)

    def test_trades_cached_until_mutation(self, filled_record):
        first = filled_record.get_trades()
        assert filled_record.get_trades() is first
        filled_record.record_fill(sell(120, 1))
        assert filled_record.get_trades() is not first

    def test_last_trade(self, filled_record):
        assert filled_record.last_trade().side is TradeType.SELL
        assert filled_record.last_entry.price == D(110)
        assert filled_record.last_exit.price == D(120)
        assert filled_record.last_trade(TradeType.BUY).index == 1

    def test_last_trade_empty(self, live_record):
        assert live_record.last_trade() is None
        assert live_record.last_exit is None

    def test_open_positions(self, filled_record):
        positions = filled_record.get_open_positions()
        assert [(p.amount, p.average_entry_price) for p in positions] == [(D(1), D(100)), (D(1), D(110))]
        net = filled_record.get_net_open_position()
        assert net.amount == D(2)
        assert net.average_entry_price == D(105)
        assert net.total_fees == D("0.2")


class TestSnapshot:
    def test_contents(self, filled_record):
        snap = filled_record.snapshot()
        assert snap.name == "test"
        assert snap.total_fees == D("0.6")
        assert len(snap.open_lots) == 2
        assert len(snap.closed_positions) == 1
        assert snap.next_sequence == 3
        assert snap.next_index == 3
        assert snap.net_open_position.amount == D(2)

    def test_immutable(self, filled_record):
        snap = filled_record.snapshot()
        with pytest.raises(FrozenInstanceError):
            snap.total_fees = D(0)
        with pytest.raises(AttributeError):
            snap.open_lots.append(None)
        with pytest.raises(TypeError):
            snap.closed_positions[0] = None

    def test_detached_from_record(self, filled_record):
        snap = filled_record.snapshot()
        filled_record.record_fill(sell(120, 2))
        assert len(snap.open_lots) == 2
        assert filled_record.is_flat

    def test_dataframes(self, filled_record):
        snap = filled_record.snapshot()
        lots = snap.lots_df()
        assert isinstance(lots, pl.DataFrame)
        assert lots.height == 2
        assert lots["amount"].to_list() == [1.0, 1.0]
        positions = snap.positions_df()
        assert positions.height == 1
        assert positions["gross_profit"][0] == pytest.approx(20.0)

    def test_empty_dataframes(self, live_record):
        snap = live_record.snapshot()
        assert snap.lots_df().is_empty()
        assert snap.positions_df().is_empty()


class TestConcurrency:
    def test_parallel_fills(self):
        record = LiveTradingRecord(TradeType.BUY, P.FIFO)
        n_threads, per_thread = 8, 50

        def worker(offset):
            for i in range(per_thread):
                record.record_fill(Fill.of("BUY", 100 + offset, 1, fee="0.01"))

        threads = [threading.Thread(target=worker, args=(k,)) for k in range(n_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        snap = record.snapshot()
        total = n_threads * per_thread
        assert len(snap.open_lots) == total
        assert [lot.entry_sequence for lot in snap.open_lots] == list(range(total))
        assert sorted(t.index for t in record.get_trades()) == list(range(total))
        assert snap.total_fees == D("0.01") * total

    def test_parallel_entries_and_exits(self):
        record = LiveTradingRecord(TradeType.BUY, P.LIFO)
        for i in range(100):
            record.record_fill(buy(100, 1))

        def exiter():
            for _ in range(25):
                record.record_fill(Fill.of("SELL", 101, 1))

        threads = [threading.Thread(target=exiter) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert record.is_flat
        assert len(record.get_positions()) == 100

    def test_fill_logging_runs_outside_the_lock(self, live_record):
        lock_free: list[bool] = []

        def try_lock():
            acquired = live_record._lock.acquire(timeout=0.2)
            if acquired:
                live_record._lock.release()
            lock_free.append(acquired)

        def sink(message):
            t = threading.Thread(target=try_lock)
            t.start()
            t.join()

        handler_id = logger.add(sink, level="DEBUG", filter="lotflow")
        try:
            live_record.record_fill(buy(100, 1))
            live_record.exit(1, 110, 1)
            live_record.enter(2, 100, 1)
            live_record.operate(3, 105, 1)
            live_record.record_trade(Trade(TradeType.BUY, price=100, amount=1))
        finally:
            logger.remove(handler_id)

        assert lock_free == [True] * 5


class TestPersistence:
    def test_pickle_round_trip(self, filled_record):
        restored = pickle.loads(pickle.dumps(filled_record))
        assert restored.snapshot() == filled_record.snapshot()
        restored.record_fill(sell(130, 2))
        assert restored.is_flat
        assert [p.entry_sequence for p in restored.get_positions()] == [0, 0, 1]

    def test_json_round_trip(self, filled_record):
        restored = record_from_json(to_json(filled_record))
        assert restored.snapshot() == filled_record.snapshot()
        assert restored.get_trades() == filled_record.get_trades()
        assert restored.name == "test"

    def test_snapshot_json_round_trip(self, filled_record):
        snap = filled_record.snapshot()
        assert snapshot_from_json(to_json(snap)) == snap

    def test_rehydrate_holding_cost(self, filled_record):
        restored = record_from_json(to_json(filled_record))
        position = restored.get_positions()[0]
        assert position.profit == position.gross_profit - position.entry.fee - position.exit.fee

        restored.rehydrate(FlatHoldingCost())
        position = restored.get_positions()[0]
        assert position.holding_cost() == D(1)
        assert position.profit == position.gross_profit - position.entry.fee - position.exit.fee - 1

    def test_side_detection_survives_round_trip(self):
        record = LiveTradingRecord(None)
        restored = record_from_json(to_json(record))
        restored.record_fill(sell(100, 1))
        assert restored.trade_type is TradeType.SELL
