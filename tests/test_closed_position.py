"""Tests for ClosedPosition, OpenPosition and the built-in cost models."""

import pytest

from lotflow.core.containers.lot import PositionLot
from lotflow.core.containers.open_position import OpenPosition
from lotflow.core.containers.position import ClosedPosition
from lotflow.core.enums import ExecutionMatchPolicy, MatchingPolicy, TradeType
from lotflow.core.exceptions import InvalidParameterError
from lotflow.cost import COST_MODELS, RecordedTradeCostModel, ZeroCostModel, get_cost_model

from fills import D, T0, buy, sell


def _closed(entry, exit_, **kwargs):
    return ClosedPosition(entry=entry, exit=exit_, entry_sequence=0, exit_sequence=1, **kwargs)


class TestClosedPosition:
    def test_long_profit(self):
        p = _closed(buy(100, 2), sell(110, 2))
        assert p.gross_profit == D(20)
        assert p.profit == D(20)
        assert p.has_profit and not p.has_loss
        assert p.gross_return == D("1.1")

    def test_long_loss(self):
        p = _closed(buy(100, 1), sell(90, 1))
        assert p.gross_profit == D(-10)
        assert p.has_loss

    def test_short_profit(self):
        p = _closed(sell(100, 1), buy(96, 1))
        assert p.gross_profit == D(4)
        assert p.gross_return == D("1.04")

    def test_recorded_fees(self):
        p = _closed(
            buy(100, 1, fee="0.5"),
            sell(101, 1, fee="0.25"),
            transaction_cost_model=RecordedTradeCostModel(),
        )
        assert p.position_cost == D("0.75")
        assert p.profit == D("0.25")

    def test_cost_models_not_compared(self):
        a = _closed(buy(100, 1), sell(101, 1))
        b = a.with_cost_models(RecordedTradeCostModel(), ZeroCostModel())
        assert a == b
        assert isinstance(b.transaction_cost_model, RecordedTradeCostModel)

    def test_dict_round_trip(self):
        p = _closed(buy(100, 1, fee="0.1", index=0), sell(101, 1, index=3))
        assert ClosedPosition.from_dict(p.to_dict()) == p


class TestOpenPosition:
    def test_aggregate(self):
        lots = [
            PositionLot(entry_sequence=0, entry_price=D(100), amount=D(1), fee=D("0.1"), entry_time=T0),
            PositionLot(entry_sequence=1, entry_price=D(130), amount=D(2), fee=D("0.2")),
        ]
        net = OpenPosition.aggregate(TradeType.BUY, lots)
        assert net.amount == D(3)
        assert net.average_entry_price == D(120)
        assert net.total_cost == D(360)
        assert net.total_fees == D("0.3")
        assert net.earliest_entry_time == T0
        assert net.lots == tuple(lots)

    def test_aggregate_empty(self):
        assert OpenPosition.aggregate(TradeType.BUY, []) is None


class TestCostModels:
    def test_registry(self):
        assert set(COST_MODELS) == {"zero", "recorded"}
        assert isinstance(get_cost_model("Recorded"), RecordedTradeCostModel)

    def test_unknown(self):
        with pytest.raises(InvalidParameterError, match="cost_model"):
            get_cost_model("borrow")

    def test_zero_cost(self):
        position = _closed(buy(100, 1, fee="0.5"), sell(110, 1, fee="0.5"))
        assert ZeroCostModel().calculate(position) == 0
        assert RecordedTradeCostModel().calculate(position) == D(1)


class TestEnums:
    def test_complement(self):
        assert TradeType.BUY.complement is TradeType.SELL
        assert TradeType.SELL.complement is TradeType.BUY

    def test_matching_policy_maps_to_execution_policy(self):
        assert MatchingPolicy.LIFO.to_execution_policy() is ExecutionMatchPolicy.LIFO

    def test_values(self):
        assert ExecutionMatchPolicy("avg_cost") is ExecutionMatchPolicy.AVG_COST
        assert TradeType("SELL") is TradeType.SELL
