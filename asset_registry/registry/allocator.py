from __future__ import annotations

"""
Identifier allocator.

Ids are handed out as `counter + 1`; the counter itself is only advanced
inside the write batch of a successful mint, so a rejected mint never burns
an id. Operations are serialized by the caller, which is what keeps two
allocations from observing the same id.
"""

from typing import List

from ..db.kv import KV, Batch, be_u64, read_u64
from .keys import K_COUNTER


class IdAllocator:
    def __init__(self, kv: KV) -> None:
        self._kv = kv

    def current(self) -> int:
        """Last allocated id (0 before the first mint)."""
        return read_u64(self._kv.get(K_COUNTER))

    def peek_next(self) -> int:
        return self.current() + 1

    def reserve(self, n: int) -> List[int]:
        """The next `n` ids in order; nothing is committed."""
        start = self.peek_next()
        return list(range(start, start + n))

    def commit(self, batch: Batch, last_id: int) -> None:
        """Advance the counter to `last_id` as part of `batch`."""
        if last_id <= self.current():
            raise ValueError(f"allocator cannot move backwards to {last_id}")
        batch.put(K_COUNTER, be_u64(last_id))


__all__ = ["IdAllocator"]
