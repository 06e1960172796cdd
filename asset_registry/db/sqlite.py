from __future__ import annotations

"""
SQLite backend for the registry KV.

One table, kv(k BLOB PRIMARY KEY, v BLOB NOT NULL). Batches run as a single
`BEGIN IMMEDIATE` transaction on a connection opened in autocommit mode, so
nothing a lifecycle operation stages is visible until it commits.

The connection is created with `check_same_thread=False`; callers that share
a registry across threads serialize access themselves (see api.deps).
"""

import sqlite3
from typing import Iterator, Optional, Tuple

from .kv import KV, Batch

MEMORY = ":memory:"

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",  # no-op for :memory:
    "PRAGMA synchronous=NORMAL",
    "PRAGMA temp_store=MEMORY",
)


def _upper_bound(prefix: bytes) -> Optional[bytes]:
    """Smallest key above every key starting with `prefix` (None if unbounded)."""
    p = bytearray(prefix)
    while p and p[-1] == 0xFF:
        p.pop()
    if not p:
        return None
    p[-1] += 1
    return bytes(p)


class SQLiteBatch(Batch):
    __slots__ = ("_conn", "_open")

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._open = False

    def __enter__(self) -> "SQLiteBatch":
        if self._open:
            raise RuntimeError("batch already open")
        self._conn.execute("BEGIN IMMEDIATE")
        self._open = True
        return self

    def _require_open(self) -> None:
        if not self._open:
            raise RuntimeError("batch used outside its `with` block")

    def put(self, key: bytes, value: bytes) -> None:
        self._require_open()
        self._conn.execute(
            "INSERT INTO kv(k, v) VALUES(?, ?) ON CONFLICT(k) DO UPDATE SET v=excluded.v",
            (key, value),
        )

    def delete(self, key: bytes) -> None:
        self._require_open()
        self._conn.execute("DELETE FROM kv WHERE k = ?", (key,))

    def __exit__(self, exc_type, exc, tb) -> Optional[bool]:
        self._open = False
        self._conn.execute("COMMIT" if exc_type is None else "ROLLBACK")
        return None


class SQLiteKV(KV):
    __slots__ = ("_conn",)

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, key: bytes) -> Optional[bytes]:
        row = self._conn.execute("SELECT v FROM kv WHERE k = ?", (key,)).fetchone()
        return bytes(row[0]) if row is not None else None

    def has(self, key: bytes) -> bool:
        return self._conn.execute("SELECT 1 FROM kv WHERE k = ?", (key,)).fetchone() is not None

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        hi = _upper_bound(prefix)
        if hi is None:
            rows = self._conn.execute(
                "SELECT k, v FROM kv WHERE k >= ? ORDER BY k", (prefix,)
            ).fetchall()
        else:
            rows = self._conn.execute(
                "SELECT k, v FROM kv WHERE k >= ? AND k < ? ORDER BY k", (prefix, hi)
            ).fetchall()
        # rows are materialized, so callers may open a batch while iterating
        for k, v in rows:
            yield bytes(k), bytes(v)

    def batch(self) -> SQLiteBatch:
        return SQLiteBatch(self._conn)

    def close(self) -> None:
        self._conn.close()


def open_sqlite_kv(path: str = MEMORY) -> SQLiteKV:
    """Open (creating if needed) the registry table at `path`."""
    conn = sqlite3.connect(path, isolation_level=None, check_same_thread=False)
    for pragma in _PRAGMAS:
        conn.execute(pragma)
    conn.execute("CREATE TABLE IF NOT EXISTS kv (k BLOB PRIMARY KEY, v BLOB NOT NULL)")
    return SQLiteKV(conn)


__all__ = ["SQLiteKV", "SQLiteBatch", "open_sqlite_kv", "MEMORY"]
