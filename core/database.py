"""
ChainPay Directory Storage Layer
================================
Durable key-value store shared by the registry, the ledger and the event log.

Every value is JSON-encoded on write and decoded on read, so callers never
hold a reference to stored state. Writes made inside `transaction()` are
buffered in an overlay and committed as one batch; an exception discards the
whole batch.

Backends:
  - MemoryStore: dict-backed, used by tests and ephemeral servers
  - SQLiteStore: single `kv` table, WAL journal, commit/rollback per batch
"""

import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

logger = logging.getLogger("chainpay.database")

# Marks a key deleted inside an open transaction overlay.
_DELETED = object()

SCHEMA = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS kv (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class KeyValueStore:
    """
    Base class: transaction overlay and JSON encoding.
    Subclasses implement `_read`, `_scan` and `_write_batch`.
    """

    def __init__(self):
        self._pending: Optional[Dict[str, Any]] = None

    # ── Backend hooks ─────────────────────────────────────────────────────────

    def _read(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def _scan(self, prefix: str) -> List[str]:
        raise NotImplementedError

    def _write_batch(self, batch: Dict[str, Any]) -> None:
        """Apply {key: encoded value | _DELETED} atomically."""
        raise NotImplementedError

    # ── Public API ────────────────────────────────────────────────────────────

    @property
    def in_transaction(self) -> bool:
        return self._pending is not None

    def get(self, key: str, default=None):
        if self._pending is not None and key in self._pending:
            raw = self._pending[key]
            if raw is _DELETED:
                return default
        else:
            raw = self._read(key)
            if raw is None:
                return default
        return json.loads(raw)

    def put(self, key: str, value) -> None:
        encoded = json.dumps(value, sort_keys=True)
        if self._pending is not None:
            self._pending[key] = encoded
        else:
            self._write_batch({key: encoded})

    def delete(self, key: str) -> None:
        if self._pending is not None:
            self._pending[key] = _DELETED
        else:
            self._write_batch({key: _DELETED})

    def keys(self, prefix: str = "") -> List[str]:
        found = set(self._scan(prefix))
        if self._pending is not None:
            for key, raw in self._pending.items():
                if not key.startswith(prefix):
                    continue
                if raw is _DELETED:
                    found.discard(key)
                else:
                    found.add(key)
        return sorted(found)

    @contextmanager
    def transaction(self) -> Iterator["KeyValueStore"]:
        """
        Buffer writes until the block exits cleanly.
        A nested call joins the enclosing transaction.
        """
        if self._pending is not None:
            yield self
            return

        self._pending = {}
        try:
            yield self
            batch, self._pending = self._pending, None
            if batch:
                self._write_batch(batch)
        except Exception:
            discarded = len(self._pending or {})
            self._pending = None
            logger.debug(f"Transaction rolled back ({discarded} pending writes discarded)")
            raise

    def close(self) -> None:
        pass


class MemoryStore(KeyValueStore):
    """Dict-backed store. Nothing survives the process."""

    def __init__(self):
        super().__init__()
        self._data: Dict[str, str] = {}

    def _read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def _scan(self, prefix: str) -> List[str]:
        return [k for k in self._data if k.startswith(prefix)]

    def _write_batch(self, batch: Dict[str, Any]) -> None:
        for key, raw in batch.items():
            if raw is _DELETED:
                self._data.pop(key, None)
            else:
                self._data[key] = raw


class SQLiteStore(KeyValueStore):
    """
    SQLite-backed store. One short-lived connection per operation,
    prepared statements throughout.
    """

    def __init__(self, db_path: str):
        super().__init__()
        self.db_path = db_path
        parent = os.path.dirname(os.path.abspath(db_path))
        os.makedirs(parent, exist_ok=True)
        with self.get_db() as conn:
            conn.executescript(SCHEMA)
        logger.info(f"SQLite store ready at {db_path}")

    @contextmanager
    def get_db(self):
        conn = sqlite3.connect(self.db_path, timeout=15, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _read(self, key: str) -> Optional[str]:
        with self.get_db() as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return row["value"] if row else None

    def _scan(self, prefix: str) -> List[str]:
        # LIKE would treat '_' and '%' in keys as wildcards
        with self.get_db() as conn:
            rows = conn.execute(
                "SELECT key FROM kv WHERE substr(key, 1, ?) = ?",
                (len(prefix), prefix)
            ).fetchall()
            return [r["key"] for r in rows]

    def _write_batch(self, batch: Dict[str, Any]) -> None:
        with self.get_db() as conn:
            conn.execute("BEGIN IMMEDIATE")
            for key, raw in batch.items():
                if raw is _DELETED:
                    conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                else:
                    conn.execute(
                        "INSERT INTO kv (key, value) VALUES (?, ?) "
                        "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                        (key, raw)
                    )


def open_store(db_path: Optional[str] = None) -> KeyValueStore:
    """SQLiteStore for a path, MemoryStore for None / "" / ":memory:"."""
    if not db_path or db_path == ":memory:":
        return MemoryStore()
    return SQLiteStore(db_path)
