from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from lotflow.core.containers.lot import PositionLot
from lotflow.core.enums import TradeType
from lotflow.utils.numbers import ZERO


@dataclass(frozen=True, slots=True)
class OpenPosition:
    """Aggregate view over one or more open lots.

    Derived on demand from the book and never cached, so it cannot go stale.

    Attributes:
        side (TradeType): Opening side of the lots.
        amount (Decimal): Total open amount.
        average_entry_price (Decimal): Amount-weighted mean entry price.
        total_cost (Decimal): Sum of ``entry_price * amount`` over the lots.
        total_fees (Decimal): Sum of the unmatched entry fees.
        earliest_entry_time (datetime | None): Oldest lot entry time.
        latest_entry_time (datetime | None): Newest lot entry time.
        lots (tuple[PositionLot, ...]): The aggregated lots, in book order.
    """

    side: TradeType
    amount: Decimal
    average_entry_price: Decimal
    total_cost: Decimal
    total_fees: Decimal
    earliest_entry_time: datetime | None
    latest_entry_time: datetime | None
    lots: tuple[PositionLot, ...] = ()

    @classmethod
    def aggregate(cls, side: TradeType, lots: Sequence[PositionLot]) -> OpenPosition | None:
        """Build the net open position of ``lots``; ``None`` when there are none."""
        if not lots:
            return None
        amount = sum((lot.amount for lot in lots), ZERO)
        total_cost = sum((lot.cost for lot in lots), ZERO)
        total_fees = sum((lot.fee for lot in lots), ZERO)
        times = _entry_times(lots)
        average = total_cost / amount if amount else total_cost
        return cls(
            side=side,
            amount=amount,
            average_entry_price=average,
            total_cost=total_cost,
            total_fees=total_fees,
            earliest_entry_time=min(times) if times else None,
            latest_entry_time=max(times) if times else None,
            lots=tuple(lots),
        )

    @classmethod
    def of_lot(cls, side: TradeType, lot: PositionLot) -> OpenPosition:
        return cls(
            side=side,
            amount=lot.amount,
            average_entry_price=lot.entry_price,
            total_cost=lot.cost,
            total_fees=lot.fee,
            earliest_entry_time=lot.entry_time,
            latest_entry_time=lot.entry_time,
            lots=(lot,),
        )


def _entry_times(lots: Iterable[PositionLot]) -> list[datetime]:
    return [lot.entry_time for lot in lots if lot.entry_time is not None]
