from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from lotflow.core import LiveTradingRecordSnapshot
from lotflow.cost import CostModel
from lotflow.ledger import LiveTradingRecord


class LedgerStore(ABC):
    """Persistence only: save/load live records and their snapshots by id."""

    @abstractmethod
    def init(self) -> None: ...

    @abstractmethod
    def save_record(self, record_id: str, record: LiveTradingRecord) -> None: ...

    @abstractmethod
    def load_record(
        self, record_id: str, holding_cost_model: Optional[CostModel] = None
    ) -> Optional[LiveTradingRecord]: ...

    @abstractmethod
    def save_snapshot(self, record_id: str, snapshot: LiveTradingRecordSnapshot) -> None: ...

    @abstractmethod
    def load_snapshot(self, record_id: str) -> Optional[LiveTradingRecordSnapshot]: ...

    @abstractmethod
    def list_records(self) -> list[str]: ...

    @abstractmethod
    def close(self) -> None: ...
