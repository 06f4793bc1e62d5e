"""
trademate.storage.base
~~~~~~~~~~~~~~~~~~~~~~
Abstract record-store interface.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

ACCOUNTS = "accounts"
SESSION  = "session"
EXPENSES = "expenses"

COLLECTIONS = frozenset({ACCOUNTS, EXPENSES})
SCALARS     = frozenset({SESSION})


@runtime_checkable
class RecordStore(Protocol):
    """Durable key-value persistence for the three trademate collections."""

    def read(self, collection: str) -> list[dict]:
        """
        Return every record of ``collection`` in store order.

        An absent collection is empty. A collection that exists but cannot
        be decoded raises ``CorruptStoreError``.
        """
        ...

    def write(self, collection: str, records: list[dict]) -> None:
        """Replace the whole collection in one transaction."""
        ...

    def get(self, key: str) -> dict | None:
        """Return a scalar entry (the session pointer), or ``None`` if absent."""
        ...

    def put(self, key: str, value: dict) -> None:
        """Create or replace a scalar entry."""
        ...

    def clear(self, key: str) -> None:
        """Remove a scalar entry. Absent keys are not an error."""
        ...

    def close(self) -> None:
        """Release connections."""
        ...
