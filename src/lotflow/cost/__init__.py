"""Cost models invoked by closed positions.

Only the interface and the two defaults the ledger needs live here. Fee
schedules, borrowing rates and other formulas are supplied by callers as
``CostModel`` subclasses.
"""

from lotflow.cost.base import CostModel
from lotflow.cost.models import COST_MODELS, RecordedTradeCostModel, ZeroCostModel, get_cost_model

__all__ = [
    "COST_MODELS",
    "CostModel",
    "RecordedTradeCostModel",
    "ZeroCostModel",
    "get_cost_model",
]
