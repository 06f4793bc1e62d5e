"""
trademate.storage.sqlite
~~~~~~~~~~~~~~~~~~~~~~~~
SQLite-backed record store.

Schema
------
kv — one row per collection or scalar entry::

    key        TEXT PRIMARY KEY   -- "accounts" | "expenses" | "session"
    payload    TEXT NOT NULL      -- JSON envelope {"version": 1, "data": ...}
    updated_at TEXT NOT NULL      -- UTC ISO timestamp of the last write

Every payload carries a format version so a later release can migrate old
rows instead of guessing. A row that is present but undecodable raises
``CorruptStoreError``; it is never treated as empty.

Default path: ``~/.trademate/trademate.db``
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any

from ..config import DEFAULT_DB_PATH
from ..exceptions import CorruptStoreError, StorageUnavailableError
from ..utils import utc_now
from .base import COLLECTIONS, SCALARS

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_SCHEMA_VERSION  = 1
PAYLOAD_VERSION  = 1


class SQLiteRecordStore:
    """Persistent SQLite storage implementing ``RecordStore``."""

    def __init__(self, db_path: Path | str | None = None) -> None:
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self._lock = threading.Lock()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._init_schema()
        except (OSError, sqlite3.Error) as exc:
            raise StorageUnavailableError(
                f"Cannot open record store at {self.db_path}", cause=exc
            ) from exc

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> "SQLiteRecordStore":
        return self

    def __exit__(self, *_) -> None:
        self.close()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def _init_schema(self) -> None:
        with self._lock:
            version = self._conn.execute("PRAGMA user_version").fetchone()[0]
            if version == 0:
                self._conn.executescript("""
                    CREATE TABLE IF NOT EXISTS kv (
                        key        TEXT PRIMARY KEY,
                        payload    TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );
                """)
                self._conn.execute(f"PRAGMA user_version = {_SCHEMA_VERSION}")
                self._conn.commit()
            elif version > _SCHEMA_VERSION:
                raise StorageUnavailableError(
                    f"{self.db_path} uses schema version {version}; "
                    f"this release understands up to {_SCHEMA_VERSION}."
                )

    # ------------------------------------------------------------------
    # Low-level envelope I/O
    # ------------------------------------------------------------------

    def _load(self, key: str) -> Any:
        """Return the decoded ``data`` of ``key``, or ``None`` when absent."""
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT payload FROM kv WHERE key = ?", (key,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageUnavailableError(f"Cannot read {key!r}", cause=exc) from exc

        if row is None:
            return None

        try:
            envelope = json.loads(row[0])
        except (json.JSONDecodeError, TypeError) as exc:
            raise CorruptStoreError(
                f"Stored {key!r} is not valid JSON", key=key, cause=exc
            ) from exc

        if not isinstance(envelope, dict) or "data" not in envelope:
            raise CorruptStoreError(f"Stored {key!r} has no data envelope", key=key)
        if envelope.get("version") != PAYLOAD_VERSION:
            raise CorruptStoreError(
                f"Stored {key!r} has unsupported version {envelope.get('version')!r}",
                key=key,
            )
        return envelope["data"]

    def _save(self, key: str, data: Any) -> None:
        payload = json.dumps({"version": PAYLOAD_VERSION, "data": data}, ensure_ascii=False)
        try:
            with self._lock:
                with self._conn:
                    self._conn.execute(
                        """INSERT INTO kv (key, payload, updated_at) VALUES (?, ?, ?)
                           ON CONFLICT(key) DO UPDATE SET
                               payload = excluded.payload,
                               updated_at = excluded.updated_at""",
                        (key, payload, utc_now().isoformat()),
                    )
        except sqlite3.Error as exc:
            raise StorageUnavailableError(f"Cannot write {key!r}", cause=exc) from exc
        logger.debug("Wrote %s (%d bytes)", key, len(payload))

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def read(self, collection: str) -> list[dict]:
        _check_name(collection, COLLECTIONS)
        data = self._load(collection)
        if data is None:
            return []
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise CorruptStoreError(
                f"Stored {collection!r} is not a list of records", key=collection
            )
        return data

    def write(self, collection: str, records: list[dict]) -> None:
        _check_name(collection, COLLECTIONS)
        self._save(collection, list(records))

    # ------------------------------------------------------------------
    # Scalars
    # ------------------------------------------------------------------

    def get(self, key: str) -> dict | None:
        _check_name(key, SCALARS)
        data = self._load(key)
        if data is not None and not isinstance(data, dict):
            raise CorruptStoreError(f"Stored {key!r} is not a record", key=key)
        return data

    def put(self, key: str, value: dict) -> None:
        _check_name(key, SCALARS)
        self._save(key, dict(value))

    def clear(self, key: str) -> None:
        _check_name(key, SCALARS)
        try:
            with self._lock:
                with self._conn:
                    self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageUnavailableError(f"Cannot clear {key!r}", cause=exc) from exc


def _check_name(name: str, allowed: frozenset) -> None:
    if name not in allowed:
        raise ValueError(f"Unknown store key {name!r}; expected one of {sorted(allowed)}")
