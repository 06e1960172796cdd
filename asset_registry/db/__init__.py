from __future__ import annotations

"""
asset_registry.db
=================

Thin facade for the key–value backends behind the registry stores.

URIs
----
- "sqlite:///path/to/registry.db"  → SQLite file
- "sqlite:///:memory:"             → in-memory SQLite
- "memory://"                      → alias of "sqlite:///:memory:"
- Bare path ending in ".db"        → SQLite file

Example
-------
>>> from asset_registry.db import open_kv
>>> kv = open_kv("memory://")
>>> with kv.batch() as b:
...     b.put(b"m:key", b"hello")
>>> kv.get(b"m:key")
b'hello'
"""

from typing import Tuple

from .kv import KV, Batch, Prefix, be_u64, read_u64
from .sqlite import MEMORY, open_sqlite_kv


def _parse_uri(uri: str) -> Tuple[str, str]:
    """
    Parse a DB URI into (backend, path).

    Returns:
        ("sqlite", path) or ("memory", "")
    """
    u = uri.strip()
    if u.startswith("sqlite:///"):
        return ("sqlite", u[len("sqlite:///") :])
    if u.startswith("memory://"):
        return ("memory", "")
    if u.endswith(".db"):
        return ("sqlite", u)
    raise ValueError(f"Unsupported DB URI: {uri!r}")


def open_kv(uri: str) -> KV:
    """
    Open a KV database by URI (see module docstring). Raises ValueError for
    unsupported URIs.
    """
    backend, target = _parse_uri(uri)
    if backend == "memory" or not target:
        return open_sqlite_kv(MEMORY)
    return open_sqlite_kv(target)


__all__ = [
    "KV",
    "Batch",
    "Prefix",
    "be_u64",
    "read_u64",
    "open_kv",
]
