"""Ledger persistence backends.

Stores live trading records and their snapshots as JSON payloads keyed
by record id. Decimals are kept as strings, so a reloaded record matches
exactly, including lot order and sequence numbers.

Backends:
    SqliteLedgerStore: Lightweight SQLite storage.
    InMemoryLedgerStore: In-memory storage for testing.

Example:
    ```python
    from lotflow.data.ledger_store import SqliteLedgerStore

    store = SqliteLedgerStore("ledger.sqlite")
    store.init()

    store.save_record("btc-live", record)
    restored = store.load_record("btc-live")
    ```
"""

from lotflow.data.ledger_store.base import LedgerStore
from lotflow.data.ledger_store.sqlite import SqliteLedgerStore
from lotflow.data.ledger_store.memory import InMemoryLedgerStore
from lotflow.data.ledger_store._serialization import (
    book_from_json,
    record_from_json,
    snapshot_from_json,
    to_json,
)

__all__ = [
    "LedgerStore",
    "SqliteLedgerStore",
    "InMemoryLedgerStore",
    "book_from_json",
    "record_from_json",
    "snapshot_from_json",
    "to_json",
]
