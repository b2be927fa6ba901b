from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any

from lotflow.core.containers.fill import Fill, format_time, parse_time
from lotflow.core.enums import TradeType
from lotflow.utils.numbers import ZERO, to_decimal


@dataclass(frozen=True, slots=True)
class PositionLot:
    """
    Open, not yet matched quantity created by an entry fill.

    Lots are values: the book replaces a lot when it shrinks or merges, so a
    lot handed out by a read accessor can never change underneath the caller.
    ``entry_sequence`` is unique within a book and never reused.
    """

    entry_sequence: int
    entry_price: Decimal
    amount: Decimal
    fee: Decimal = ZERO
    entry_index: int | None = None
    entry_time: datetime | None = None
    order_id: str | None = None
    correlation_id: str | None = None

    @classmethod
    def from_fill(cls, index: int | None, fill: Fill, sequence: int) -> PositionLot:
        return cls(
            entry_sequence=sequence,
            entry_price=fill.price,
            amount=fill.amount,
            fee=fill.fee,
            entry_index=index,
            entry_time=fill.time,
            order_id=fill.order_id,
            correlation_id=fill.correlation_id,
        )

    @property
    def cost(self) -> Decimal:
        return self.entry_price * self.amount

    def matches(self, key: str) -> bool:
        return key == self.correlation_id or key == self.order_id

    def fee_portion(self, amount: Decimal) -> Decimal:
        """Share of this lot's fee attributable to ``amount``."""
        if self.fee.is_zero() or amount == self.amount:
            return self.fee
        return self.fee * amount / self.amount

    def reduce(self, amount: Decimal, fee_portion: Decimal) -> PositionLot:
        """Remainder after ``amount`` has been matched away."""
        return replace(self, amount=self.amount - amount, fee=self.fee - fee_portion)

    def merge(self, other: PositionLot) -> PositionLot:
        """Average-cost merge; keeps this lot's sequence, time, index and ids."""
        total = self.amount + other.amount
        price = (self.amount * self.entry_price + other.amount * other.entry_price) / total
        return replace(self, amount=total, entry_price=price, fee=self.fee + other.fee)

    def entry_fill(self, side: TradeType, amount: Decimal, fee: Decimal) -> Fill:
        """Entry leg of this lot restricted to ``amount``."""
        return Fill(
            price=self.entry_price,
            amount=amount,
            side=side,
            time=self.entry_time,
            fee=fee,
            order_id=self.order_id,
            correlation_id=self.correlation_id,
            index=self.entry_index,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_sequence": self.entry_sequence,
            "entry_price": str(self.entry_price),
            "amount": str(self.amount),
            "fee": str(self.fee),
            "entry_index": self.entry_index,
            "entry_time": format_time(self.entry_time),
            "order_id": self.order_id,
            "correlation_id": self.correlation_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PositionLot:
        return cls(
            entry_sequence=int(data["entry_sequence"]),
            entry_price=to_decimal(data["entry_price"]),
            amount=to_decimal(data["amount"]),
            fee=to_decimal(data.get("fee"), default=ZERO),
            entry_index=data.get("entry_index"),
            entry_time=parse_time(data.get("entry_time")),
            order_id=data.get("order_id"),
            correlation_id=data.get("correlation_id"),
        )
