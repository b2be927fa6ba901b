from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Any

from lotflow.core.enums import TradeType
from lotflow.core.exceptions import InvalidFillError
from lotflow.utils.numbers import ZERO, NumberLike, is_non_negative, is_positive, to_decimal


@dataclass(frozen=True, slots=True)
class Fill:
    """
    Executed fill.
    Immutable domain event produced by an execution venue.

    Numeric fields are coerced to ``Decimal``; an absent fee is stored as zero.
    Construction only rejects values that are not numbers at all (or an
    unknown side); range checks are left to ``validate_fill``.
    """

    price: Decimal
    amount: Decimal
    side: TradeType = TradeType.BUY
    time: datetime | None = None
    fee: Decimal = ZERO

    order_id: str | None = None
    correlation_id: str | None = None
    index: int | None = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "price", to_decimal(self.price))
            object.__setattr__(self, "amount", to_decimal(self.amount))
            object.__setattr__(self, "fee", to_decimal(self.fee, default=ZERO))
        except TypeError as e:
            raise InvalidFillError(str(e)) from e
        if not isinstance(self.side, TradeType):
            try:
                object.__setattr__(self, "side", TradeType(str(self.side).upper()))
            except ValueError as e:
                raise InvalidFillError(f"unknown side {self.side!r}") from e

    @classmethod
    def of(
        cls,
        side: TradeType | str,
        price: NumberLike,
        amount: NumberLike,
        *,
        fee: NumberLike | None = None,
        time: datetime | None = None,
        order_id: str | None = None,
        correlation_id: str | None = None,
        index: int | None = None,
    ) -> Fill:
        return cls(
            price=price,
            amount=amount,
            side=side,
            time=time,
            fee=fee,
            order_id=order_id,
            correlation_id=correlation_id,
            index=index,
        )

    @property
    def is_buy(self) -> bool:
        return self.side is TradeType.BUY

    @property
    def is_sell(self) -> bool:
        return self.side is TradeType.SELL

    @property
    def notional(self) -> Decimal:
        return self.price * self.amount

    @property
    def identifiers(self) -> tuple[str, ...]:
        """Non-blank identifiers, correlation id first."""
        return tuple(i for i in (self.correlation_id, self.order_id) if i is not None and i.strip())

    def with_index(self, index: int) -> Fill:
        return self if self.index == index else replace(self, index=index)

    def with_amount(self, amount: Decimal, fee: Decimal) -> Fill:
        return replace(self, amount=amount, fee=fee)

    def to_dict(self) -> dict[str, Any]:
        return {
            "price": str(self.price),
            "amount": str(self.amount),
            "side": self.side.value,
            "time": format_time(self.time),
            "fee": str(self.fee),
            "order_id": self.order_id,
            "correlation_id": self.correlation_id,
            "index": self.index,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Fill:
        return cls(
            price=data["price"],
            amount=data["amount"],
            side=data.get("side", TradeType.BUY),
            time=parse_time(data.get("time")),
            fee=data.get("fee"),
            order_id=data.get("order_id"),
            correlation_id=data.get("correlation_id"),
            index=data.get("index"),
        )


def format_time(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def parse_time(value: str | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def validate_fill(fill: Fill | None) -> Fill:
    """Reject fills that must never reach a position book.

    Raises:
        InvalidFillError: If the fill is missing, or its price or amount is
            not a finite positive number, or its fee is negative or NaN.
    """
    if fill is None:
        raise InvalidFillError("fill must not be None")
    if not isinstance(fill, Fill):
        raise InvalidFillError(f"expected Fill, got {type(fill).__name__}")
    if not is_positive(fill.amount):
        raise InvalidFillError("amount must be a finite positive number", fill)
    if not is_positive(fill.price):
        raise InvalidFillError("price must be a finite positive number", fill)
    if not is_non_negative(fill.fee):
        raise InvalidFillError("fee must be a finite non-negative number", fill)
    return fill
