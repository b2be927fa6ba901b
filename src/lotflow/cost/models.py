from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, ClassVar

from lotflow.core.exceptions import InvalidParameterError
from lotflow.cost.base import CostModel
from lotflow.utils.numbers import ZERO

if TYPE_CHECKING:
    from lotflow.core.containers.position import ClosedPosition


@dataclass
class ZeroCostModel(CostModel):
    """No transaction or holding costs."""
    name: ClassVar[str] = "zero"

    def calculate(self, position: ClosedPosition, final_index: int | None = None) -> Decimal:
        return ZERO


@dataclass
class RecordedTradeCostModel(CostModel):
    """Transaction cost equal to the fees recorded on the entry and exit fills.

    Live records always price transactions this way, since the venue already
    reported what was charged.
    """
    name: ClassVar[str] = "recorded"

    def calculate(self, position: ClosedPosition, final_index: int | None = None) -> Decimal:
        return position.entry.fee + position.exit.fee


COST_MODELS: dict[str, type[CostModel]] = {
    ZeroCostModel.name: ZeroCostModel,
    RecordedTradeCostModel.name: RecordedTradeCostModel,
}


def get_cost_model(name: str) -> CostModel:
    """Instantiate a built-in cost model by name (case-insensitive)."""
    key = name.lower()
    if key not in COST_MODELS:
        raise InvalidParameterError(
            "cost_model",
            name,
            "unknown cost model",
            hint=f"Use one of: {', '.join(sorted(COST_MODELS))}",
        )
    return COST_MODELS[key]()
