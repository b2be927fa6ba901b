"""Record of several simultaneous, independent positions."""
from __future__ import annotations

from decimal import Decimal

from loguru import logger

from lotflow.core.containers.fill import Fill
from lotflow.core.containers.lot import PositionLot
from lotflow.core.containers.open_position import OpenPosition
from lotflow.core.containers.position import ClosedPosition
from lotflow.core.enums import MatchingPolicy, TradeType
from lotflow.core.exceptions import InvalidParameterError
from lotflow.cost import CostModel, ZeroCostModel
from lotflow.ledger._logging import log_fill
from lotflow.ledger.position_book import PositionBook
from lotflow.utils.numbers import NumberLike, to_decimal


class MultiTradingRecord:
    """
    Index-based record for strategies that hold several positions at once.

    Every ``enter`` opens an independent lot. ``exit`` first looks for an
    open lot of exactly the requested amount and closes it; otherwise lots
    are consumed in FIFO or LIFO order, splitting the last one touched.
    Fees and identifiers are not tracked; costs come from the transaction
    and holding cost models, both zero unless given.

    Matching is delegated to a ``PositionBook`` so both records share one
    matching engine.

    A NaN exit amount is accepted: it means "no specific amount" and closes
    the whole lot at the head of the policy order (oldest for FIFO, newest
    for LIFO). A warning is logged each time this happens.
    """

    def __init__(
        self,
        trade_type: TradeType = TradeType.BUY,
        matching_policy: MatchingPolicy = MatchingPolicy.FIFO,
        transaction_cost_model: CostModel | None = None,
        holding_cost_model: CostModel | None = None,
        *,
        name: str | None = None,
        start_index: int | None = None,
        end_index: int | None = None,
    ):
        if matching_policy is None:
            raise InvalidParameterError(
                "matching_policy", matching_policy, "must not be None", hint="Use MatchingPolicy.FIFO or MatchingPolicy.LIFO"
            )
        try:
            self.matching_policy = MatchingPolicy(matching_policy)
        except ValueError as e:
            raise InvalidParameterError(
                "matching_policy", matching_policy, "only FIFO and LIFO are supported"
            ) from e
        self.name = name
        self.start_index = start_index
        self.end_index = end_index
        self._book = PositionBook(
            trade_type,
            self.matching_policy.to_execution_policy(),
            transaction_cost_model if transaction_cost_model is not None else ZeroCostModel(),
            holding_cost_model if holding_cost_model is not None else ZeroCostModel(),
        )
        self._trades: list[Fill] = []

    @property
    def trade_type(self) -> TradeType:
        return self._book.trade_type

    @property
    def transaction_cost_model(self) -> CostModel:
        return self._book.transaction_cost_model

    @property
    def holding_cost_model(self) -> CostModel:
        return self._book.holding_cost_model

    def enter(self, index: int, price: NumberLike, amount: NumberLike) -> bool:
        """Open a new independent position. Always returns ``True``."""
        fill = Fill.of(self.trade_type, price, amount, index=index)
        sequence = self._book.record_entry(index, fill)
        self._trades.append(fill)
        log_fill(fill, sequence, [])
        return True

    def exit(self, index: int, price: NumberLike, amount: NumberLike) -> bool:
        """Close open positions.

        Returns:
            bool: ``False`` when there is nothing to close.

        Raises:
            InsufficientOpenAmountError: ``amount`` exceeds the open amount.
            InvalidFillError: ``price`` is invalid or ``amount`` is not positive.
        """
        if self._book.is_flat:
            return False

        value = to_decimal(amount)
        side = self.trade_type.complement
        if value is not None and value.is_nan():
            head = self._policy_order()[0]
            logger.warning(
                f"Exit amount is NaN; closing the {self.matching_policy.value.upper()} head lot "
                f"(sequence={head.entry_sequence}, amount={head.amount})"
            )
            fill = Fill.of(side, price, head.amount, index=index)
            closed = self._book.record_exit(index, fill, lot_sequence=head.entry_sequence)
        else:
            fill = Fill.of(side, price, value, index=index)
            exact = self._find_lot(value)
            pinned = exact.entry_sequence if exact is not None else None
            closed = self._book.record_exit(index, fill, lot_sequence=pinned)

        self._trades.extend(p.exit for p in closed)
        log_fill(fill, closed[0].exit_sequence, closed)
        return True

    def operate(self, index: int, price: NumberLike, amount: NumberLike) -> bool:
        """Enter when flat, exit otherwise."""
        if self._book.is_flat:
            return self.enter(index, price, amount)
        return self.exit(index, price, amount)

    def find_open_position_by_amount(self, amount: NumberLike) -> OpenPosition | None:
        """First open position (in policy order) holding exactly ``amount``."""
        value = to_decimal(amount)
        if value is None or value.is_nan():
            return None
        lot = self._find_lot(value)
        return OpenPosition.of_lot(self.trade_type, lot) if lot is not None else None

    def get_open_positions(self, ordering: MatchingPolicy | None = None) -> list[OpenPosition]:
        """Open positions in ``ordering`` (the record's policy by default)."""
        lots = self._book.open_lots()
        if MatchingPolicy(ordering or self.matching_policy) is MatchingPolicy.LIFO:
            lots.reverse()
        return [OpenPosition.of_lot(self.trade_type, lot) for lot in lots]

    def get_positions(self) -> list[ClosedPosition]:
        return self._book.get_positions()

    @property
    def current_position(self) -> OpenPosition | None:
        """Most recently opened position whatever the policy, or ``None`` when flat."""
        lots = self._book.open_lots()
        return OpenPosition.of_lot(self.trade_type, lots[-1]) if lots else None

    @property
    def net_open_position(self) -> OpenPosition | None:
        return self._book.get_net_open_position()

    @property
    def is_closed(self) -> bool:
        return self._book.is_flat

    @property
    def trades(self) -> list[Fill]:
        """Entry and exit fills in the order they were recorded."""
        return list(self._trades)

    @property
    def last_entry(self) -> Fill | None:
        return next((t for t in reversed(self._trades) if t.side is self.trade_type), None)

    @property
    def last_exit(self) -> Fill | None:
        return next((t for t in reversed(self._trades) if t.side is not self.trade_type), None)

    @property
    def open_amount(self) -> Decimal:
        return self._book.open_amount

    def __repr__(self) -> str:
        return (
            f"MultiTradingRecord(name={self.name!r}, policy={self.matching_policy.value}, "
            f"open={len(self._book.open_lots())}, closed={len(self._book.closed_positions())})"
        )

    def _policy_order(self) -> list[PositionLot]:
        lots = self._book.open_lots()
        if self.matching_policy is MatchingPolicy.LIFO:
            lots.reverse()
        return lots

    def _find_lot(self, amount: Decimal) -> PositionLot | None:
        for lot in self._policy_order():
            if lot.amount == amount:
                return lot
        return None
