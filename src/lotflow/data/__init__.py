"""Persistence for lotflow records."""

from lotflow.data.ledger_store import (
    InMemoryLedgerStore,
    LedgerStore,
    SqliteLedgerStore,
)

__all__ = [
    "InMemoryLedgerStore",
    "LedgerStore",
    "SqliteLedgerStore",
]
