from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

from lotflow.core.containers.fill import Fill
from lotflow.cost import CostModel, ZeroCostModel


@dataclass(frozen=True, slots=True)
class ClosedPosition:
    """
    Entry lot (or a portion of it) paired with the exit fill that closed it.
    Append-only: a book never edits a closed position after creating it.

    ``entry_sequence`` and ``exit_sequence`` record which lot and which exit
    produced the pairing, so trade history can be replayed in the original
    order after a restart. Cost models are attached at runtime and take no
    part in equality or serialization.
    """

    entry: Fill
    exit: Fill
    entry_sequence: int
    exit_sequence: int

    transaction_cost_model: CostModel = field(default_factory=ZeroCostModel, compare=False, repr=False)
    holding_cost_model: CostModel = field(default_factory=ZeroCostModel, compare=False, repr=False)

    @property
    def amount(self) -> Decimal:
        return self.entry.amount

    @property
    def side_sign(self) -> int:
        return 1 if self.entry.is_buy else -1

    @property
    def gross_profit(self) -> Decimal:
        """Exit value minus entry value; negated for short positions."""
        return self.side_sign * (self.exit.notional - self.entry.notional)

    @property
    def position_cost(self) -> Decimal:
        return self.transaction_cost_model.calculate(self) + self.holding_cost()

    @property
    def profit(self) -> Decimal:
        return self.gross_profit - self.position_cost

    @property
    def has_profit(self) -> bool:
        return self.profit > 0

    @property
    def has_loss(self) -> bool:
        return self.profit < 0

    @property
    def gross_return(self) -> Decimal:
        """Return including the base: 1.04 for a 4% gain on a long."""
        ratio = self.exit.price / self.entry.price
        if self.entry.is_buy:
            return ratio
        return 2 - ratio

    def holding_cost(self, final_index: int | None = None) -> Decimal:
        return self.holding_cost_model.calculate(self, final_index)

    def with_cost_models(self, transaction: CostModel, holding: CostModel) -> ClosedPosition:
        return replace(self, transaction_cost_model=transaction, holding_cost_model=holding)

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry": self.entry.to_dict(),
            "exit": self.exit.to_dict(),
            "entry_sequence": self.entry_sequence,
            "exit_sequence": self.exit_sequence,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClosedPosition:
        return cls(
            entry=Fill.from_dict(data["entry"]),
            exit=Fill.from_dict(data["exit"]),
            entry_sequence=int(data["entry_sequence"]),
            exit_sequence=int(data["exit_sequence"]),
        )
