from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from lotflow.core.containers.fill import Fill
from lotflow.core.enums import TradeType


@dataclass(frozen=True, slots=True)
class Trade:
    """
    Order-level trade.
    One side and one pair of identifiers, executed as one or more fills.

    A trade without ``fills`` stands for a single execution at ``price`` and
    ``amount``. Otherwise each partial fill keeps its own index, price,
    amount and fee, and inherits the side, identifiers and time of the trade
    where it carries none of its own.
    """

    side: TradeType
    price: Decimal | None = None
    amount: Decimal | None = None
    index: int | None = None
    time: datetime | None = None
    order_id: str | None = None
    correlation_id: str | None = None
    fills: tuple[Fill, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.side, TradeType):
            object.__setattr__(self, "side", TradeType(str(self.side).upper()))
        if not isinstance(self.fills, tuple):
            object.__setattr__(self, "fills", tuple(self.fills))

    def to_fills(self) -> list[Fill]:
        """Execution fills in the order they should be recorded."""
        if not self.fills:
            return [
                Fill(
                    price=self.price,
                    amount=self.amount,
                    side=self.side,
                    time=self.time,
                    order_id=self.order_id,
                    correlation_id=self.correlation_id,
                    index=self.index,
                )
            ]
        return [
            replace(
                fill,
                side=self.side,
                time=fill.time or self.time,
                order_id=fill.order_id or self.order_id,
                correlation_id=fill.correlation_id or self.correlation_id,
            )
            for fill in self.fills
        ]
