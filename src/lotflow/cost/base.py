"""Cost model interface consumed by closed positions."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from lotflow.core.containers.position import ClosedPosition


@dataclass
class CostModel(ABC):
    """Base class for transaction and holding cost models.

    The ledger only invokes cost models when a closed position reports its
    profit; it never computes costs on its own. Implementations must be
    stateless or immutable, since one instance is shared by every position of
    a book.
    """
    name: ClassVar[str] = "base"

    @abstractmethod
    def calculate(self, position: ClosedPosition, final_index: int | None = None) -> Decimal:
        """Cost of a position.

        Args:
            position: Position to price.
            final_index: Index up to which holding costs accrue. ``None``
                means the position's own exit index.

        Returns:
            Cost in quote currency, never negative.
        """
        raise NotImplementedError
