"""Lot-level book of one trading direction."""
from __future__ import annotations

from decimal import Decimal
from typing import Any

from lotflow.core.containers.fill import Fill, validate_fill
from lotflow.core.containers.lot import PositionLot
from lotflow.core.containers.open_position import OpenPosition
from lotflow.core.containers.position import ClosedPosition
from lotflow.core.enums import ExecutionMatchPolicy, TradeType
from lotflow.core.exceptions import (
    InvalidParameterError,
    LedgerStateError,
    LotSequenceError,
    NoOpenPositionError,
)
from lotflow.cost import CostModel, ZeroCostModel
from lotflow.matching import match_lots, merge_entry
from lotflow.utils.numbers import ZERO

_ZERO_COST = ZeroCostModel()


class PositionBook:
    """Open lots and closed positions for one opening side.

    Entry fills create (or, under AVG_COST, merge into) lots; exit fills are
    matched against the open lots by the active policy and produce one
    ``ClosedPosition`` per matched lot. Every mutation is computed on a copy
    and committed at the end, so a rejected fill leaves the book unchanged.

    Sequence numbers are shared by entries and exits, strictly increasing and
    never reused. They survive serialization, which is what keeps FIFO and
    LIFO ordering stable across restarts.

    Not thread-safe. ``LiveTradingRecord`` wraps a book with a lock.

    Attributes:
        trade_type (TradeType): Opening side of the lots.
        match_policy (ExecutionMatchPolicy): Lot selection for exits.
        transaction_cost_model (CostModel): Attached to closed positions.
        holding_cost_model (CostModel): Attached to closed positions.

    Example:
        ```python
        book = PositionBook(TradeType.BUY, ExecutionMatchPolicy.FIFO)
        book.record_entry(0, Fill.of("BUY", 100, 2))
        book.record_entry(1, Fill.of("BUY", 110, 1))
        closed = book.record_exit(2, Fill.of("SELL", 120, 2))
        assert closed[0].entry.price == 100
        assert book.get_net_open_position().amount == 1
        ```
    """

    def __init__(
        self,
        trade_type: TradeType,
        match_policy: ExecutionMatchPolicy = ExecutionMatchPolicy.FIFO,
        transaction_cost_model: CostModel = _ZERO_COST,
        holding_cost_model: CostModel = _ZERO_COST,
    ):
        self.trade_type = _require_trade_type(trade_type)
        self.match_policy = _require_policy(match_policy)
        self.transaction_cost_model = _require_cost_model("transaction_cost_model", transaction_cost_model)
        self.holding_cost_model = _require_cost_model("holding_cost_model", holding_cost_model)

        self._lots: list[PositionLot] = []
        self._closed: list[ClosedPosition] = []
        self._next_sequence = 0
        self._entered = ZERO

    # ── Mutations ─────────────────────────────────────────────────────────

    def record_entry(self, index: int | None, fill: Fill, sequence: int | None = None) -> int:
        """Open (or merge into) a lot.

        Args:
            index: Strategy-relative index of the fill.
            fill: Entry fill.
            sequence: Explicit sequence number; allocated when ``None``.

        Returns:
            int: Sequence number of the entry.

        Raises:
            InvalidFillError: The fill is missing or invalid.
            LotSequenceError: ``sequence`` is not above every sequence seen.
        """
        fill = validate_fill(fill)
        seq = self._resolve_sequence(sequence)
        lot = PositionLot.from_fill(index, fill, seq)
        lots = merge_entry(self.match_policy, self._lots, lot)

        self._lots = list(lots)
        self._next_sequence = seq + 1
        self._entered += fill.amount
        return seq

    def record_exit(
        self,
        index: int | None,
        fill: Fill,
        sequence: int | None = None,
        *,
        lot_sequence: int | None = None,
    ) -> list[ClosedPosition]:
        """Close open lots with an exit fill.

        The exit fee is split across the matched lots in proportion to the
        matched amounts, so the pieces add up to ``fill.fee`` exactly.

        Args:
            index: Strategy-relative index of the fill.
            fill: Exit fill.
            sequence: Explicit sequence number; allocated when ``None``.
            lot_sequence: Close only the lot with this entry sequence.

        Returns:
            list[ClosedPosition]: One closed position per matched lot, in
            match order.

        Raises:
            InvalidFillError: The fill is missing or invalid.
            NoOpenPositionError: The book is flat.
            InsufficientOpenAmountError: The exit is larger than the open amount.
            SpecificLotMismatchError: SPECIFIC_LOT could not pick a lot.
            LotSequenceError: ``sequence`` is not above every sequence seen.
        """
        fill = validate_fill(fill)
        if not self._lots:
            raise NoOpenPositionError(fill)
        seq = self._resolve_sequence(sequence)
        result = match_lots(
            self.match_policy,
            tuple(self._lots),
            fill.amount,
            identifiers=fill.identifiers,
            lot_sequence=lot_sequence,
        )

        exit_fill = fill if index is None else fill.with_index(index)
        closed: list[ClosedPosition] = []
        fee_left = exit_fill.fee
        amount_left = exit_fill.amount
        for match in result.matches:
            if match.amount == amount_left:
                exit_fee = fee_left
            else:
                exit_fee = fee_left * match.amount / amount_left
            fee_left -= exit_fee
            amount_left -= match.amount
            closed.append(
                ClosedPosition(
                    entry=match.lot.entry_fill(self.trade_type, match.amount, match.entry_fee),
                    exit=exit_fill.with_amount(match.amount, exit_fee),
                    entry_sequence=match.lot.entry_sequence,
                    exit_sequence=seq,
                    transaction_cost_model=self.transaction_cost_model,
                    holding_cost_model=self.holding_cost_model,
                )
            )

        self._lots = list(result.remaining)
        self._closed.extend(closed)
        self._next_sequence = seq + 1
        return closed

    def reopen_as(self, trade_type: TradeType) -> None:
        """Switch the opening side. Only allowed while flat."""
        trade_type = _require_trade_type(trade_type)
        if trade_type is self.trade_type:
            return
        if self._lots:
            raise LedgerStateError(
                f"Cannot switch the opening side to {trade_type.value} while "
                f"{len(self._lots)} {self.trade_type.value} lot(s) are open."
            )
        self.trade_type = trade_type

    def rehydrate_cost_models(self, transaction: CostModel, holding: CostModel) -> None:
        """Re-attach cost models after deserialization."""
        self.transaction_cost_model = _require_cost_model("transaction_cost_model", transaction)
        self.holding_cost_model = _require_cost_model("holding_cost_model", holding)
        self._closed = [p.with_cost_models(transaction, holding) for p in self._closed]

    # ── Read views ────────────────────────────────────────────────────────

    def open_lots(self) -> list[PositionLot]:
        return list(self._lots)

    def get_positions(self) -> list[ClosedPosition]:
        return list(self._closed)

    def closed_positions(self) -> tuple[ClosedPosition, ...]:
        return tuple(self._closed)

    def closed_positions_with_sequence(self) -> list[tuple[int, ClosedPosition]]:
        """Closed positions keyed by exit sequence, oldest exit first."""
        return [(p.exit_sequence, p) for p in self._closed]

    def open_positions(self) -> list[OpenPosition]:
        return [OpenPosition.of_lot(self.trade_type, lot) for lot in self._lots]

    def get_net_open_position(self) -> OpenPosition | None:
        return OpenPosition.aggregate(self.trade_type, self._lots)

    @property
    def is_flat(self) -> bool:
        return not self._lots

    @property
    def next_sequence(self) -> int:
        return self._next_sequence

    @property
    def entered_amount(self) -> Decimal:
        """Cumulative amount of every accepted entry fill."""
        return self._entered

    @property
    def open_amount(self) -> Decimal:
        return sum((lot.amount for lot in self._lots), ZERO)

    # ── Persistence ───────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "trade_type": self.trade_type.value,
            "match_policy": self.match_policy.value,
            "next_sequence": self._next_sequence,
            "entered_amount": str(self._entered),
            "open_lots": [lot.to_dict() for lot in self._lots],
            "closed_positions": [p.to_dict() for p in self._closed],
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        transaction_cost_model: CostModel = _ZERO_COST,
        holding_cost_model: CostModel = _ZERO_COST,
    ) -> PositionBook:
        """Restore a book; lots and closed positions keep order and sequences."""
        book = cls(
            TradeType(data["trade_type"]),
            ExecutionMatchPolicy(data["match_policy"]),
            transaction_cost_model,
            holding_cost_model,
        )
        book._lots = [PositionLot.from_dict(d) for d in data.get("open_lots", [])]
        book._closed = [
            ClosedPosition.from_dict(d).with_cost_models(transaction_cost_model, holding_cost_model)
            for d in data.get("closed_positions", [])
        ]
        if "next_sequence" in data:
            book._next_sequence = int(data["next_sequence"])
        else:
            book._next_sequence = max(book._used_sequences(), default=-1) + 1
        if "entered_amount" in data:
            book._entered = Decimal(data["entered_amount"])
        else:
            book._entered = book.open_amount + sum((p.amount for p in book._closed), ZERO)
        book._check_sequences()
        return book

    def __getstate__(self) -> dict[str, Any]:
        state = self.to_dict()
        state["cost_models"] = (self.transaction_cost_model, self.holding_cost_model)
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        transaction, holding = state.pop("cost_models", (_ZERO_COST, _ZERO_COST))
        restored = PositionBook.from_dict(state, transaction, holding)
        self.__dict__.update(restored.__dict__)

    def __repr__(self) -> str:
        return (
            f"PositionBook(trade_type={self.trade_type.value}, policy={self.match_policy.value}, "
            f"open_lots={len(self._lots)}, closed={len(self._closed)}, next_sequence={self._next_sequence})"
        )

    # ── Internals ─────────────────────────────────────────────────────────

    def _resolve_sequence(self, sequence: int | None) -> int:
        if sequence is None:
            return self._next_sequence
        if sequence < self._next_sequence:
            raise LotSequenceError(
                sequence, f"must be at least {self._next_sequence} (sequences are never reused)"
            )
        return sequence

    def _used_sequences(self) -> list[int]:
        return [lot.entry_sequence for lot in self._lots] + [p.exit_sequence for p in self._closed]

    def _check_sequences(self) -> None:
        used = self._used_sequences()
        if used and max(used) >= self._next_sequence:
            raise LotSequenceError(max(used), f"not below next_sequence {self._next_sequence}")
        previous = None
        for lot in self._lots:
            if previous is not None and lot.entry_sequence <= previous:
                raise LotSequenceError(lot.entry_sequence, "open lots are not in ascending order")
            previous = lot.entry_sequence


def _require_trade_type(trade_type: TradeType | None) -> TradeType:
    if trade_type is None:
        raise InvalidParameterError("trade_type", trade_type, "must not be None", hint="Use TradeType.BUY or TradeType.SELL")
    try:
        return TradeType(trade_type)
    except ValueError as e:
        raise InvalidParameterError("trade_type", trade_type, "unknown trade type") from e


def _require_policy(policy: ExecutionMatchPolicy | None) -> ExecutionMatchPolicy:
    if policy is None:
        raise InvalidParameterError(
            "match_policy",
            policy,
            "must not be None",
            hint=f"Use one of: {', '.join(p.value for p in ExecutionMatchPolicy)}",
        )
    try:
        return ExecutionMatchPolicy(policy)
    except ValueError as e:
        raise InvalidParameterError(
            "match_policy",
            policy,
            "unknown match policy",
            hint=f"Use one of: {', '.join(p.value for p in ExecutionMatchPolicy)}",
        ) from e


def _require_cost_model(param: str, model: CostModel | None) -> CostModel:
    if model is None:
        raise InvalidParameterError(param, model, "must not be None", hint="Pass ZeroCostModel() for no costs")
    if not isinstance(model, CostModel):
        raise InvalidParameterError(param, model, f"expected a CostModel, got {type(model).__name__}")
    return model
