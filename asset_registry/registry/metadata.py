from __future__ import annotations

"""
Metadata store: asset id -> opaque metadata string.

A recorded metadata value is what makes an id "exist". Values are never
erased, so metadata of destroyed assets stays readable as a historical
record. Format validation lives in the lifecycle guard; this store only
persists values the guard has accepted.
"""

from typing import Optional

from ..db.kv import KV, Batch
from .keys import metadata_key


class MetadataStore:
    def __init__(self, kv: KV) -> None:
        self._kv = kv

    def get(self, asset_id: int) -> Optional[str]:
        raw = self._kv.get(metadata_key(asset_id))
        return raw.decode("utf-8") if raw is not None else None

    def exists(self, asset_id: int) -> bool:
        return self._kv.has(metadata_key(asset_id))

    def put(self, batch: Batch, asset_id: int, value: str) -> None:
        batch.put(metadata_key(asset_id), value.encode("utf-8"))


__all__ = ["MetadataStore"]
