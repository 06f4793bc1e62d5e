"""
trademate.storage
~~~~~~~~~~~~~~~~~
Pluggable persistence layer for accounts, the session pointer and expenses.

Default backend: SQLite at ``~/.trademate/trademate.db``.

Usage::

    from trademate.storage import get_store

    with get_store() as store:
        for raw in store.read("expenses"):
            print(raw["vendor"], raw["amount"])
"""

from .base import ACCOUNTS, EXPENSES, SESSION, RecordStore
from .sqlite import SQLiteRecordStore


def get_store(db_path=None) -> SQLiteRecordStore:
    """Return the default SQLite store, optionally at a custom path."""
    return SQLiteRecordStore(db_path=db_path)


__all__ = [
    "RecordStore",
    "SQLiteRecordStore",
    "get_store",
    "ACCOUNTS",
    "SESSION",
    "EXPENSES",
]
