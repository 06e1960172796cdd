from __future__ import annotations

"""
Audit & metrics log
===================

Side bookkeeping written alongside lifecycle transitions, inside the same
write batch:

- an append-only audit record per transition: {clock, asset_id, action,
  actor, details}, keyed a:<id>,<clock>
- a per-asset last-operation marker (l:<id>)
- a per-asset transfer counter (t:<id>)
- the registry-wide logical clock (m:clock), +1 per audit record

The counters and markers always move with a successful transition. Only the
record itself is best effort: one that cannot be encoded is logged and
skipped instead of failing the operation. `replay_transfer_counts` and
`rebuild` recompute the counters and markers from the audit records.
"""

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from ..db.kv import KV, Batch, be_u64, read_u64
from ..logging import get_logger
from .keys import (AUDIT, K_CLOCK, LAST_OP, TRANSFERS, audit_key, audit_prefix,
                   last_op_key, transfers_key)

log = get_logger(__name__)

# Action tags
ACTION_MINT = "mint"
ACTION_TRANSFER = "transfer"
ACTION_DESTROY = "destroy"
ACTION_ADMIN_DESTROY = "admin_destroy"
ACTION_UPDATE_METADATA = "update_metadata"

ACTIONS = (
    ACTION_MINT,
    ACTION_TRANSFER,
    ACTION_DESTROY,
    ACTION_ADMIN_DESTROY,
    ACTION_UPDATE_METADATA,
)


@dataclass(frozen=True)
class AuditRecord:
    clock: int
    asset_id: int
    action: str
    actor: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def encode(self) -> bytes:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":")).encode("utf-8")

    @classmethod
    def decode(cls, raw: bytes) -> "AuditRecord":
        d = json.loads(raw.decode("utf-8"))
        return cls(
            clock=int(d["clock"]),
            asset_id=int(d["asset_id"]),
            action=str(d["action"]),
            actor=str(d["actor"]),
            details=dict(d.get("details") or {}),
        )


class AuditWriter:
    """
    Stages audit bookkeeping for one operation on an open batch.

    The logical clock is read once and advanced locally so several records
    written by one call (bulk mint) get consecutive clock values.
    """

    def __init__(self, kv: KV, batch: Batch) -> None:
        self._kv = kv
        self._batch = batch
        self._clock = read_u64(kv.get(K_CLOCK))
        self._transfers: Dict[int, int] = {}

    def record(
        self, asset_id: int, action: str, actor: str, **details: Any
    ) -> Optional[AuditRecord]:
        """
        Stage the per-asset counters for `action`, then its audit record.
        The counters always move; a record that cannot be encoded is logged
        and skipped.
        """
        self._batch.put(last_op_key(asset_id), action.encode("utf-8"))
        if action == ACTION_TRANSFER:
            self._bump_transfers(asset_id)
        rec = AuditRecord(
            clock=self._clock + 1,
            asset_id=asset_id,
            action=action,
            actor=actor,
            details=details,
        )
        try:
            payload = rec.encode()
        except (TypeError, ValueError) as e:
            log.warning(
                "audit_record_skipped", asset_id=asset_id, action=action, error=str(e)
            )
            return None
        self._clock = rec.clock
        self._batch.put(audit_key(asset_id, rec.clock), payload)
        self._batch.put(K_CLOCK, be_u64(rec.clock))
        return rec

    def _bump_transfers(self, asset_id: int) -> None:
        if asset_id not in self._transfers:
            self._transfers[asset_id] = read_u64(self._kv.get(transfers_key(asset_id)))
        self._transfers[asset_id] += 1
        self._batch.put(transfers_key(asset_id), be_u64(self._transfers[asset_id]))


class AuditLog:
    def __init__(self, kv: KV) -> None:
        self._kv = kv

    def writer(self, batch: Batch) -> AuditWriter:
        return AuditWriter(self._kv, batch)

    # --- reads ---

    def clock(self) -> int:
        return read_u64(self._kv.get(K_CLOCK))

    def transfer_count(self, asset_id: int) -> int:
        return read_u64(self._kv.get(transfers_key(asset_id)))

    def last_operation(self, asset_id: int) -> Optional[str]:
        raw = self._kv.get(last_op_key(asset_id))
        return raw.decode("utf-8") if raw is not None else None

    def records(self, asset_id: int) -> List[AuditRecord]:
        return [AuditRecord.decode(v) for _, v in self._kv.iter_prefix(audit_prefix(asset_id))]

    def iter_all(self) -> Iterator[AuditRecord]:
        """Every audit record, grouped by asset id, oldest first within an asset."""
        for _, v in self._kv.iter_prefix(AUDIT.raw):
            yield AuditRecord.decode(v)

    # --- recomputation ---

    def replay_transfer_counts(self) -> Dict[int, int]:
        """Recompute per-asset transfer counters from the audit history."""
        counts: Dict[int, int] = {}
        for rec in self.iter_all():
            counts.setdefault(rec.asset_id, 0)
            if rec.action == ACTION_TRANSFER:
                counts[rec.asset_id] += 1
        return counts

    def rebuild(self) -> int:
        """
        Rewrite transfer counters and last-operation markers from the audit
        records. Returns the number of assets rewritten.
        """
        counts: Dict[int, int] = {}
        last: Dict[int, AuditRecord] = {}
        for rec in self.iter_all():
            counts.setdefault(rec.asset_id, 0)
            if rec.action == ACTION_TRANSFER:
                counts[rec.asset_id] += 1
            prev = last.get(rec.asset_id)
            if prev is None or rec.clock > prev.clock:
                last[rec.asset_id] = rec

        with self._kv.batch() as b:
            for k, _ in self._kv.iter_prefix(TRANSFERS.raw):
                b.delete(k)
            for k, _ in self._kv.iter_prefix(LAST_OP.raw):
                b.delete(k)
            for asset_id, n in counts.items():
                if n:
                    b.put(transfers_key(asset_id), be_u64(n))
                b.put(last_op_key(asset_id), last[asset_id].action.encode("utf-8"))
        log.info("audit_cache_rebuilt", assets=len(counts))
        return len(counts)


__all__ = [
    "AuditRecord",
    "AuditWriter",
    "AuditLog",
    "ACTIONS",
    "ACTION_MINT",
    "ACTION_TRANSFER",
    "ACTION_DESTROY",
    "ACTION_ADMIN_DESTROY",
    "ACTION_UPDATE_METADATA",
]
