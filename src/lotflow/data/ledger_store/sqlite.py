from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Optional

from loguru import logger

from lotflow.core import LiveTradingRecordSnapshot
from lotflow.cost import CostModel
from lotflow.data.ledger_store.base import LedgerStore
from lotflow.data.ledger_store.schema import SCHEMA_SQL
from lotflow.data.ledger_store._serialization import (
    to_json as _to_json,
    record_from_json as _record_from_json,
    snapshot_from_json as _snapshot_from_json,
)
from lotflow.ledger import LiveTradingRecord


def _adapt_datetime(val: datetime) -> str:
    return val.isoformat(" ")


def _convert_datetime(val: bytes) -> datetime:
    return datetime.fromisoformat(val.decode())


sqlite3.register_adapter(datetime, _adapt_datetime)
sqlite3.register_converter("TIMESTAMP", _convert_datetime)


class SqliteLedgerStore(LedgerStore):
    """SQLite implementation of ledger persistence. Zero extra deps.

    One row per record id in each table; saving again replaces the row.
    """

    def __init__(self, path: str) -> None:
        self.path = str(path)
        self.con = sqlite3.connect(
            self.path,
            detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
        )
        self.con.execute("PRAGMA journal_mode=WAL")

    def init(self) -> None:
        self.con.executescript(SCHEMA_SQL)
        self.con.commit()
        logger.info(f"Initialised ledger store at {self.path}")

    def save_record(self, record_id: str, record: LiveTradingRecord) -> None:
        payload = _to_json(record)
        self.con.execute(
            """
            INSERT INTO ledger_records(record_id, saved_at, payload_json)
            VALUES (?, ?, ?)
            ON CONFLICT(record_id) DO UPDATE SET
              saved_at = excluded.saved_at,
              payload_json = excluded.payload_json
            """,
            (record_id, datetime.now(timezone.utc), payload),
        )
        self.con.commit()

    def load_record(
        self, record_id: str, holding_cost_model: Optional[CostModel] = None
    ) -> Optional[LiveTradingRecord]:
        row = self.con.execute(
            "SELECT payload_json FROM ledger_records WHERE record_id = ?",
            (record_id,),
        ).fetchone()
        if not row:
            return None
        logger.info(f"Loaded ledger record '{record_id}' from {self.path}")
        return _record_from_json(row[0], holding_cost_model)

    def save_snapshot(self, record_id: str, snapshot: LiveTradingRecordSnapshot) -> None:
        self.con.execute(
            """
            INSERT INTO ledger_snapshots(record_id, saved_at, payload_json)
            VALUES (?, ?, ?)
            ON CONFLICT(record_id) DO UPDATE SET
              saved_at = excluded.saved_at,
              payload_json = excluded.payload_json
            """,
            (record_id, datetime.now(timezone.utc), _to_json(snapshot)),
        )
        self.con.commit()

    def load_snapshot(self, record_id: str) -> Optional[LiveTradingRecordSnapshot]:
        row = self.con.execute(
            "SELECT payload_json FROM ledger_snapshots WHERE record_id = ?",
            (record_id,),
        ).fetchone()
        if not row:
            return None
        return _snapshot_from_json(row[0])

    def list_records(self) -> list[str]:
        rows = self.con.execute("SELECT record_id FROM ledger_records ORDER BY record_id").fetchall()
        return [r[0] for r in rows]

    def close(self) -> None:
        self.con.close()
