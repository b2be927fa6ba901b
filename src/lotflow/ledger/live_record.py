"""Thread-safe trading record fed by live execution fills."""
from __future__ import annotations

import threading
from decimal import Decimal
from typing import Any

from lotflow.core.containers.fill import Fill, validate_fill
from lotflow.core.containers.open_position import OpenPosition
from lotflow.core.containers.position import ClosedPosition
from lotflow.core.containers.snapshot import LiveTradingRecordSnapshot
from lotflow.core.containers.trade import Trade
from lotflow.core.enums import ExecutionMatchPolicy, TradeType
from lotflow.core.exceptions import InvalidParameterError
from lotflow.cost import CostModel, RecordedTradeCostModel, ZeroCostModel
from lotflow.ledger._logging import log_fill
from lotflow.ledger.position_book import PositionBook
from lotflow.utils.numbers import ZERO, NumberLike


class LiveTradingRecord:
    """
    Trading record for live or paper trading.

    Wraps a ``PositionBook`` and turns incoming fills into entries or exits:
    a fill on the opening side adds a lot, a fill on the other side closes
    lots through the configured match policy. Transaction costs are always
    the fees the venue recorded on the fills.

    Every public method takes one re-entrant lock, so fills may arrive from
    several threads while readers take snapshots. Returned collections are
    copies of immutable values.

    Attributes:
        name (str | None): Optional record label.
        start_index (int | None): First index the record covers.
        end_index (int | None): Last index the record covers.

    Example:
        ```python
        record = LiveTradingRecord(TradeType.BUY, ExecutionMatchPolicy.FIFO)
        record.record_fill(Fill.of("BUY", 100, 1, fee="0.1"))
        record.record_fill(Fill.of("SELL", 105, 1, fee="0.1"))

        position = record.get_positions()[0]
        position.profit       # Decimal("4.8")
        record.total_fees     # Decimal("0.2")
        ```
    """

    def __init__(
        self,
        trade_type: TradeType | None = TradeType.BUY,
        match_policy: ExecutionMatchPolicy = ExecutionMatchPolicy.FIFO,
        holding_cost_model: CostModel | None = None,
        *,
        name: str | None = None,
        start_index: int | None = None,
        end_index: int | None = None,
    ):
        self.name = name
        self.start_index = start_index
        self.end_index = end_index

        self._fixed_side = trade_type is not None
        self._book = PositionBook(
            trade_type if trade_type is not None else TradeType.BUY,
            match_policy,
            RecordedTradeCostModel(),
            holding_cost_model if holding_cost_model is not None else ZeroCostModel(),
        )
        self._lock = threading.RLock()
        self._next_index = 0
        self._total_fees = ZERO
        self._trades_cache: tuple[Fill, ...] | None = None

    @property
    def trade_type(self) -> TradeType:
        """Current opening side."""
        return self._book.trade_type

    @property
    def match_policy(self) -> ExecutionMatchPolicy:
        return self._book.match_policy

    @property
    def transaction_cost_model(self) -> CostModel:
        return self._book.transaction_cost_model

    @property
    def holding_cost_model(self) -> CostModel:
        return self._book.holding_cost_model

    # ── Recording ─────────────────────────────────────────────────────────

    def record_fill(self, fill: Fill, index: int | None = None) -> list[ClosedPosition]:
        """Record an execution fill.

        The index is ``index`` if given, else ``fill.index`` when it is not
        negative, else the next auto-incremented index.

        Returns:
            list[ClosedPosition]: Positions closed by the fill; empty for entries.

        Raises:
            InvalidParameterError: ``index`` is negative.
            InvalidFillError: The fill is missing or invalid.
            LedgerStateError: The book rejected the fill; nothing was recorded.
        """
        with self._lock:
            fill, sequence, closed = self._apply(fill, index)
        log_fill(fill, sequence, closed)
        return closed

    def record_trade(self, trade: Trade) -> list[ClosedPosition]:
        """Replay a trade fill by fill.

        Fills are recorded one at a time in the order the trade lists them.
        If one is rejected, the fills before it stay recorded.

        Returns:
            list[ClosedPosition]: Positions closed by all of the trade's fills.
        """
        applied: list[tuple[Fill, int, list[ClosedPosition]]] = []
        try:
            with self._lock:
                for fill in trade.to_fills():
                    applied.append(self._apply(fill, None))
        finally:
            for fill, sequence, closed in applied:
                log_fill(fill, sequence, closed)
        return [position for _, _, closed in applied for position in closed]

    def enter(self, index: int, price: NumberLike, amount: NumberLike) -> bool:
        """Open a position if flat. Returns ``False`` when one is already open."""
        with self._lock:
            if not self._book.is_flat:
                return False
            applied = self._apply(Fill.of(self._book.trade_type, price, amount, index=index), index)
        log_fill(*applied)
        return True

    def exit(self, index: int, price: NumberLike, amount: NumberLike) -> bool:
        """Close open lots. Returns ``False`` when flat."""
        with self._lock:
            if self._book.is_flat:
                return False
            applied = self._apply(Fill.of(self._book.trade_type.complement, price, amount, index=index), index)
        log_fill(*applied)
        return True

    def operate(self, index: int, price: NumberLike, amount: NumberLike) -> None:
        """Enter when flat, exit otherwise."""
        with self._lock:
            side = self._book.trade_type if self._book.is_flat else self._book.trade_type.complement
            applied = self._apply(Fill.of(side, price, amount, index=index), index)
        log_fill(*applied)

    # ── Read views ────────────────────────────────────────────────────────

    def get_positions(self) -> list[ClosedPosition]:
        with self._lock:
            return self._book.get_positions()

    def get_open_positions(self) -> list[OpenPosition]:
        with self._lock:
            return self._book.open_positions()

    def get_net_open_position(self) -> OpenPosition | None:
        with self._lock:
            return self._book.get_net_open_position()

    def get_current_position(self) -> Fill | None:
        """Open lots folded into one entry fill, or ``None`` when flat.

        The fill carries the average entry price, the net amount, the
        unmatched entry fees, and the earliest entry index and time.
        """
        with self._lock:
            net = self._book.get_net_open_position()
        if net is None:
            return None
        indexes = [lot.entry_index for lot in net.lots if lot.entry_index is not None]
        return Fill(
            price=net.average_entry_price,
            amount=net.amount,
            side=net.side,
            time=net.earliest_entry_time,
            fee=net.total_fees,
            index=min(indexes) if indexes else None,
        )

    def get_trades(self) -> tuple[Fill, ...]:
        """Every entry and exit leg, ordered by index then sequence.

        Cached until the next recorded fill.
        """
        with self._lock:
            if self._trades_cache is None:
                self._trades_cache = self._build_trades()
            return self._trades_cache

    def last_trade(self, trade_type: TradeType | None = None) -> Fill | None:
        trades = self.get_trades()
        if trade_type is None:
            return trades[-1] if trades else None
        for trade in reversed(trades):
            if trade.side is trade_type:
                return trade
        return None

    @property
    def last_entry(self) -> Fill | None:
        return self.last_trade(self.trade_type)

    @property
    def last_exit(self) -> Fill | None:
        return self.last_trade(self.trade_type.complement)

    @property
    def total_fees(self) -> Decimal:
        """Sum of the fees of every recorded fill."""
        with self._lock:
            return self._total_fees

    @property
    def is_flat(self) -> bool:
        with self._lock:
            return self._book.is_flat

    def snapshot(self) -> LiveTradingRecordSnapshot:
        """Immutable point-in-time copy of the record."""
        with self._lock:
            return LiveTradingRecordSnapshot(
                trade_type=self._book.trade_type,
                match_policy=self._book.match_policy,
                open_lots=tuple(self._book.open_lots()),
                closed_positions=self._book.closed_positions(),
                total_fees=self._total_fees,
                next_sequence=self._book.next_sequence,
                next_index=self._next_index,
                name=self.name,
            )

    # ── Persistence ───────────────────────────────────────────────────────

    def rehydrate(self, holding_cost_model: CostModel | None = None) -> None:
        """Re-attach cost models after deserialization.

        Transaction costs are always the recorded fees; the holding cost
        model defaults to zero.
        """
        with self._lock:
            self._book.rehydrate_cost_models(
                RecordedTradeCostModel(),
                holding_cost_model if holding_cost_model is not None else ZeroCostModel(),
            )

    def to_dict(self) -> dict[str, Any]:
        with self._lock:
            return {
                "name": self.name,
                "start_index": self.start_index,
                "end_index": self.end_index,
                "fixed_side": self._fixed_side,
                "next_index": self._next_index,
                "total_fees": str(self._total_fees),
                "book": self._book.to_dict(),
            }

    @classmethod
    def from_dict(cls, data: dict[str, Any], holding_cost_model: CostModel | None = None) -> LiveTradingRecord:
        """Restore a record. Cost models are not persisted: pass the holding model here or call ``rehydrate``."""
        record = cls.__new__(cls)
        record._restore(data)
        if holding_cost_model is not None:
            record.rehydrate(holding_cost_model)
        return record

    def __getstate__(self) -> dict[str, Any]:
        return self.to_dict()

    def __setstate__(self, state: dict[str, Any]) -> None:
        self._restore(state)

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"LiveTradingRecord(name={self.name!r}, trade_type={self._book.trade_type.value}, "
                f"policy={self._book.match_policy.value}, open_lots={len(self._book.open_lots())}, "
                f"closed={len(self._book.closed_positions())}, total_fees={self._total_fees})"
            )

    # ── Internals ─────────────────────────────────────────────────────────

    def _apply(self, fill: Fill, index: int | None) -> tuple[Fill, int, list[ClosedPosition]]:
        """Record one fill. Caller holds the lock and logs afterwards."""
        fill = validate_fill(fill)
        if index is not None and index < 0:
            raise InvalidParameterError("index", index, "must be >= 0")
        if index is None and fill.index is not None and fill.index >= 0:
            index = fill.index
        if index is None:
            index = self._next_index
        fill = fill.with_index(index)

        if not self._fixed_side and self._book.is_flat:
            self._book.reopen_as(fill.side)

        if fill.side is self._book.trade_type:
            sequence = self._book.record_entry(index, fill)
            closed: list[ClosedPosition] = []
        else:
            closed = self._book.record_exit(index, fill)
            sequence = closed[0].exit_sequence

        self._next_index = max(self._next_index, index + 1)
        self._total_fees += fill.fee
        self._trades_cache = None
        return fill, sequence, closed

    def _restore(self, data: dict[str, Any]) -> None:
        self.name = data.get("name")
        self.start_index = data.get("start_index")
        self.end_index = data.get("end_index")
        self._fixed_side = bool(data.get("fixed_side", True))
        self._book = PositionBook.from_dict(data["book"], RecordedTradeCostModel(), ZeroCostModel())
        self._lock = threading.RLock()
        self._next_index = int(data.get("next_index", 0))
        self._total_fees = Decimal(data.get("total_fees", "0"))
        self._trades_cache = None

    def _build_trades(self) -> tuple[Fill, ...]:
        legs: list[tuple[int, int, Fill]] = []
        for position in self._book.closed_positions():
            legs.append((position.entry.index or 0, position.entry_sequence, position.entry))
            legs.append((position.exit.index or 0, position.exit_sequence, position.exit))
        side = self._book.trade_type
        for lot in self._book.open_lots():
            legs.append((lot.entry_index or 0, lot.entry_sequence, lot.entry_fill(side, lot.amount, lot.fee)))
        legs.sort(key=lambda leg: (leg[0], leg[1]))
        return tuple(fill for _, _, fill in legs)
