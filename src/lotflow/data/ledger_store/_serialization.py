"""Shared JSON serialization helpers for ledger stores."""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass

from lotflow.core import LiveTradingRecordSnapshot
from lotflow.cost import CostModel, ZeroCostModel
from lotflow.ledger import LiveTradingRecord, PositionBook


def to_json(obj: object) -> str:
    """Convert object to JSON string.

    Uses the object's ``to_dict`` when it has one, so Decimals stay exact
    strings and lots keep their order. Other dataclasses go through
    ``asdict``; default=str covers the remaining non-JSON types.
    """
    if hasattr(obj, "to_dict"):
        obj = obj.to_dict()
    elif is_dataclass(obj) and not isinstance(obj, type):
        obj = asdict(obj)
    return json.dumps(obj, default=str, ensure_ascii=False)


def book_from_json(
    payload: str,
    transaction_cost_model: CostModel | None = None,
    holding_cost_model: CostModel | None = None,
) -> PositionBook:
    """Deserialize PositionBook from JSON string."""
    data = json.loads(payload)
    return PositionBook.from_dict(
        data,
        transaction_cost_model or ZeroCostModel(),
        holding_cost_model or ZeroCostModel(),
    )


def record_from_json(payload: str, holding_cost_model: CostModel | None = None) -> LiveTradingRecord:
    """Deserialize LiveTradingRecord from JSON string."""
    data = json.loads(payload)
    return LiveTradingRecord.from_dict(data, holding_cost_model)


def snapshot_from_json(payload: str) -> LiveTradingRecordSnapshot:
    """Deserialize LiveTradingRecordSnapshot from JSON string."""
    data = json.loads(payload)
    return LiveTradingRecordSnapshot.from_dict(data)
