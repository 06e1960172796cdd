from __future__ import annotations

"""
Ownership ledger: asset id -> current owner, plus the destroyed flags.

An owner entry exists exactly while the asset is live. Destruction removes
the owner entry and sets the destroyed flag in the same batch; nothing ever
clears the flag again.
"""

from typing import Optional

from ..db.kv import KV, Batch
from .keys import DESTROYED_FLAG, OWNERS, destroyed_key, owner_key


class OwnershipLedger:
    def __init__(self, kv: KV) -> None:
        self._kv = kv

    # --- reads ---

    def owner_of(self, asset_id: int) -> Optional[str]:
        raw = self._kv.get(owner_key(asset_id))
        return raw.decode("utf-8") if raw is not None else None

    def is_destroyed(self, asset_id: int) -> bool:
        return self._kv.has(destroyed_key(asset_id))

    def live_count(self) -> int:
        return sum(1 for _ in self._kv.iter_prefix(OWNERS.raw))

    # --- staged writes ---

    def set_owner(self, batch: Batch, asset_id: int, owner: str) -> None:
        batch.put(owner_key(asset_id), owner.encode("utf-8"))

    def mark_destroyed(self, batch: Batch, asset_id: int) -> None:
        batch.delete(owner_key(asset_id))
        batch.put(destroyed_key(asset_id), DESTROYED_FLAG)


__all__ = ["OwnershipLedger"]
