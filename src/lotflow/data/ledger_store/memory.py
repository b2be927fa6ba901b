from __future__ import annotations

from typing import Optional

from loguru import logger

from lotflow.core import LiveTradingRecordSnapshot
from lotflow.cost import CostModel
from lotflow.data.ledger_store.base import LedgerStore
from lotflow.data.ledger_store._serialization import (
    to_json as _to_json,
    record_from_json as _record_from_json,
    snapshot_from_json as _snapshot_from_json,
)
from lotflow.ledger import LiveTradingRecord


class InMemoryLedgerStore(LedgerStore):
    """In-memory implementation of ledger persistence.

    Payloads are kept as JSON strings, so a loaded record never shares
    state with the one that was saved. Useful for tests, notebooks,
    and short-lived sessions where persistence is not needed.
    """

    def __init__(self) -> None:
        self._records: dict[str, str] = {}  # record_id -> payload_json
        self._snapshots: dict[str, str] = {}  # record_id -> payload_json

    def init(self) -> None:
        pass  # nothing to initialise

    def save_record(self, record_id: str, record: LiveTradingRecord) -> None:
        self._records[record_id] = _to_json(record)

    def load_record(
        self, record_id: str, holding_cost_model: Optional[CostModel] = None
    ) -> Optional[LiveTradingRecord]:
        payload = self._records.get(record_id)
        if payload is None:
            return None
        logger.info(f"Loaded ledger record '{record_id}' from memory")
        return _record_from_json(payload, holding_cost_model)

    def save_snapshot(self, record_id: str, snapshot: LiveTradingRecordSnapshot) -> None:
        self._snapshots[record_id] = _to_json(snapshot)

    def load_snapshot(self, record_id: str) -> Optional[LiveTradingRecordSnapshot]:
        payload = self._snapshots.get(record_id)
        if payload is None:
            return None
        return _snapshot_from_json(payload)

    def list_records(self) -> list[str]:
        return sorted(self._records)

    def close(self) -> None:
        self._records.clear()
        self._snapshots.clear()
