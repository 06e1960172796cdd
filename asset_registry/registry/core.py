from __future__ import annotations

"""
AssetRegistry
=============

Facade over the registry stores. One instance owns one KV store and every
component built on it (allocator, ledger, metadata, guard, audit log,
metrics). Nothing here is module-global, so tests and embedding hosts can run
any number of independent registries side by side.

Write protocol for every mutating call:

    1) normalize the caller identity
    2) run the lifecycle guard (raises, never writes)
    3) stage all writes into one KV batch: state + counter + audit
    4) commit, then update metrics and log the transition

Bulk mint in "partial" mode is the only call that succeeds while some of its
input is rejected; see `bulk_mint_detailed`.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from structlog.contextvars import bound_contextvars

from ..context import CallContext, normalize_identity
from ..db import open_kv
from ..db.kv import KV
from ..errors import ContextError, MetadataInvalid, RegistryConfigError, RegistryError
from ..limits import DEFAULT_LIMITS, RegistryLimits
from ..logging import get_logger
from ..metrics import RegistryMetrics
from .allocator import IdAllocator
from .audit import (ACTION_ADMIN_DESTROY, ACTION_DESTROY, ACTION_MINT,
                    ACTION_TRANSFER, ACTION_UPDATE_METADATA, AuditLog,
                    AuditRecord)
from .guard import LifecycleGuard
from .keys import K_ADMIN
from .ledger import OwnershipLedger
from .metadata import MetadataStore

log = get_logger(__name__)

Caller = Union[str, CallContext]

DESTROY_PATH_OWNER = "owner"
DESTROY_PATH_ADMIN = "admin"


@dataclass(frozen=True)
class BulkMintResult:
    """
    Outcome of one bulk mint.

    ids:        newly allocated ids, in input order of the accepted items
    requested:  number of items submitted
    rejected:   input indexes skipped for invalid metadata (partial mode)
    """

    ids: List[int]
    requested: int
    rejected: List[int] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return len(self.ids) < self.requested

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ids": list(self.ids),
            "requested": self.requested,
            "rejected": list(self.rejected),
            "partial": self.is_partial,
        }


@dataclass(frozen=True)
class AssetRecord:
    asset_id: int
    metadata: str
    owner: Optional[str]
    destroyed: bool
    transfer_count: int
    last_operation: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "metadata": self.metadata,
            "owner": self.owner,
            "destroyed": self.destroyed,
            "transfer_count": self.transfer_count,
            "last_operation": self.last_operation,
        }


def _known_id(asset_id: Any) -> bool:
    return isinstance(asset_id, int) and not isinstance(asset_id, bool) and asset_id >= 1


class AssetRegistry:
    def __init__(
        self,
        kv: KV,
        *,
        administrator: str,
        limits: Optional[RegistryLimits] = None,
        metrics: Optional[RegistryMetrics] = None,
    ) -> None:
        try:
            admin = normalize_identity(administrator, field="administrator")
        except ContextError as e:
            raise RegistryConfigError(e.message, **e.data) from None

        self._kv = kv
        self._limits = limits or DEFAULT_LIMITS
        self._admin = self._bind_administrator(admin)

        self.allocator = IdAllocator(kv)
        self.ledger = OwnershipLedger(kv)
        self.metadata = MetadataStore(kv)
        self.audit = AuditLog(kv)
        self.guard = LifecycleGuard(
            self.ledger, self.metadata, administrator=self._admin, limits=self._limits
        )
        self.metrics = metrics or RegistryMetrics()
        self.metrics.live_assets.set(self.ledger.live_count())

    @classmethod
    def from_config(cls, settings: Any) -> "AssetRegistry":
        """Open the store named by `settings.db_uri` with the configured limits."""
        return open_registry(
            settings.db_uri,
            administrator=settings.administrator,
            limits=settings.to_limits(),
        )

    def _bind_administrator(self, admin: str) -> str:
        stored = self._kv.get(K_ADMIN)
        if stored is None:
            with self._kv.batch() as b:
                b.put(K_ADMIN, admin.encode("utf-8"))
            return admin
        current = stored.decode("utf-8")
        if current != admin:
            raise RegistryConfigError(
                "store was created with a different administrator",
                stored=current,
                requested=admin,
            )
        return current

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def administrator(self) -> str:
        return self._admin

    @property
    def limits(self) -> RegistryLimits:
        return self._limits

    @property
    def kv(self) -> KV:
        return self._kv

    def close(self) -> None:
        self._kv.close()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @contextmanager
    def _operation(self, name: str, caller: Caller) -> Iterator[str]:
        """Normalize the caller, then count and log the outcome of `name`."""
        try:
            ctx = CallContext.of(caller)
            trace = {"trace_id": ctx.trace_id} if ctx.trace_id else {}
            with bound_contextvars(**trace):
                yield ctx.caller
        except RegistryError as e:
            self.metrics.rejected(name, e.kind)
            log.info(
                "operation_rejected",
                operation=name,
                code=str(getattr(e.code, "value", e.code)),
                reason=e.message,
                data=e.data,
            )
            raise
        else:
            self.metrics.ok(name)

    def mint(self, caller: Caller, metadata: str) -> int:
        """Mint one asset owned by the administrator; returns its id."""
        with self._operation(ACTION_MINT, caller) as who:
            value = self.guard.check_mint(who, metadata)
            asset_id = self.allocator.peek_next()
            with self._kv.batch() as b:
                self.metadata.put(b, asset_id, value)
                self.ledger.set_owner(b, asset_id, who)
                self.allocator.commit(b, asset_id)
                self.audit.writer(b).record(asset_id, ACTION_MINT, who, owner=who)
            self.metrics.minted()
            log.info("asset_minted", asset_id=asset_id, caller=who)
            return asset_id

    def bulk_mint(self, caller: Caller, items: Sequence[str]) -> List[int]:
        """
        Mint up to `limits.max_bulk` assets in one call; returns the new ids.

        In "partial" mode (default) items with invalid metadata are skipped
        and the rest are still minted, so the returned list can be shorter
        than `items`. Compare the lengths, or use `bulk_mint_detailed`, to
        detect partial application.
        """
        return self.bulk_mint_detailed(caller, items).ids

    def bulk_mint_detailed(self, caller: Caller, items: Sequence[str]) -> BulkMintResult:
        with self._operation("bulk_mint", caller) as who:
            self.guard.require_admin(who, operation="bulk_mint")
            if isinstance(items, (str, bytes)):
                raise MetadataInvalid("bulk items must be a sequence of strings")
            items = list(items)
            n = self.guard.check_bulk_size(items)

            accepted: List[str] = []
            rejected: List[int] = []
            for index, item in enumerate(items):
                try:
                    accepted.append(self.guard.check_metadata(item, index=index))
                except MetadataInvalid as e:
                    if self._limits.atomic_bulk:
                        raise
                    rejected.append(index)
                    log.info("bulk_item_skipped", index=index, reason=e.message)

            ids = self.allocator.reserve(len(accepted))
            if ids:
                with self._kv.batch() as b:
                    writer = self.audit.writer(b)
                    for asset_id, value in zip(ids, accepted):
                        self.metadata.put(b, asset_id, value)
                        self.ledger.set_owner(b, asset_id, who)
                        writer.record(asset_id, ACTION_MINT, who, owner=who, bulk=True)
                    self.allocator.commit(b, ids[-1])

            result = BulkMintResult(ids=ids, requested=n, rejected=rejected)
            self.metrics.minted(len(ids))
            self.metrics.skipped(len(rejected))
            log.info(
                "assets_bulk_minted",
                caller=who,
                requested=n,
                minted=len(ids),
                rejected=rejected,
                first_id=ids[0] if ids else None,
            )
            return result

    def transfer(self, caller: Caller, asset_id: int, sender: str, recipient: str) -> bool:
        """
        Move `asset_id` from `sender` to `recipient`. The call must be made by
        the recipient, claiming an asset the sender currently holds.
        """
        with self._operation(ACTION_TRANSFER, caller) as who:
            aid, src, dst = self.guard.check_transfer(who, asset_id, sender, recipient)
            with self._kv.batch() as b:
                self.ledger.set_owner(b, aid, dst)
                self.audit.writer(b).record(aid, ACTION_TRANSFER, who, sender=src, recipient=dst)
            self.metrics.transferred()
            log.info("asset_transferred", asset_id=aid, sender=src, recipient=dst)
            return True

    def destroy(self, caller: Caller, asset_id: int) -> bool:
        with self._operation(ACTION_DESTROY, caller) as who:
            aid = self.guard.check_destroy(who, asset_id)
            self._destroy(aid, who, ACTION_DESTROY, owner=who)
            self.metrics.destroyed(DESTROY_PATH_OWNER)
            log.info("asset_destroyed", asset_id=aid, caller=who, path=DESTROY_PATH_OWNER)
            return True

    def admin_destroy(self, caller: Caller, asset_id: int) -> bool:
        with self._operation(ACTION_ADMIN_DESTROY, caller) as who:
            aid = self.guard.check_admin_destroy(who, asset_id)
            self._destroy(aid, who, ACTION_ADMIN_DESTROY, owner=self.ledger.owner_of(aid))
            self.metrics.destroyed(DESTROY_PATH_ADMIN)
            log.info("asset_destroyed", asset_id=aid, caller=who, path=DESTROY_PATH_ADMIN)
            return True

    def _destroy(self, aid: int, who: str, action: str, **details: Any) -> None:
        with self._kv.batch() as b:
            self.ledger.mark_destroyed(b, aid)
            self.audit.writer(b).record(aid, action, who, **details)

    def update_metadata(self, caller: Caller, asset_id: int, metadata: str) -> bool:
        with self._operation(ACTION_UPDATE_METADATA, caller) as who:
            aid = self.guard.check_update_metadata(who, asset_id, metadata)
            previous = self.metadata.get(aid)
            with self._kv.batch() as b:
                self.metadata.put(b, aid, metadata)
                self.audit.writer(b).record(
                    aid, ACTION_UPDATE_METADATA, who, previous=previous, metadata=metadata
                )
            log.info("asset_metadata_updated", asset_id=aid, caller=who)
            return True

    # ------------------------------------------------------------------
    # Reads (never raise for unknown ids)
    # ------------------------------------------------------------------

    def metadata_of(self, asset_id: int) -> Optional[str]:
        return self.metadata.get(asset_id) if _known_id(asset_id) else None

    def owner_of(self, asset_id: int) -> Optional[str]:
        return self.ledger.owner_of(asset_id) if _known_id(asset_id) else None

    def exists(self, asset_id: int) -> bool:
        return _known_id(asset_id) and self.metadata.exists(asset_id)

    def is_destroyed(self, asset_id: int) -> Optional[bool]:
        """True/False for minted ids; None when the id was never minted."""
        if not self.exists(asset_id):
            return None
        return self.ledger.is_destroyed(asset_id)

    def total_minted(self) -> int:
        return self.allocator.current()

    def live_assets(self) -> int:
        return self.ledger.live_count()

    def transfer_count(self, asset_id: int) -> int:
        return self.audit.transfer_count(asset_id) if _known_id(asset_id) else 0

    def last_operation(self, asset_id: int) -> Optional[str]:
        return self.audit.last_operation(asset_id) if _known_id(asset_id) else None

    def audit_records(self, asset_id: int) -> List[AuditRecord]:
        return self.audit.records(asset_id) if _known_id(asset_id) else []

    def asset_details(self, asset_id: int) -> Optional[AssetRecord]:
        if not self.exists(asset_id):
            return None
        return AssetRecord(
            asset_id=asset_id,
            metadata=self.metadata.get(asset_id) or "",
            owner=self.ledger.owner_of(asset_id),
            destroyed=self.ledger.is_destroyed(asset_id),
            transfer_count=self.audit.transfer_count(asset_id),
            last_operation=self.audit.last_operation(asset_id),
        )

    def details_range(self, start: int, count: int) -> List[AssetRecord]:
        """
        Details for ids [start, start + count); `count` is capped at
        `limits.max_bulk` and ids that were never minted are omitted.
        """
        if count < 1:
            return []
        start = max(int(start), 1)
        count = min(int(count), self._limits.max_bulk)
        out: List[AssetRecord] = []
        for asset_id in range(start, start + count):
            rec = self.asset_details(asset_id)
            if rec is not None:
                out.append(rec)
        return out

    def stats(self) -> Dict[str, Any]:
        return {
            "administrator": self._admin,
            "total_minted": self.total_minted(),
            "live_assets": self.live_assets(),
            "limits": self._limits.as_dict(),
        }

    # ------------------------------------------------------------------
    # Audit maintenance
    # ------------------------------------------------------------------

    def replay_transfer_counts(self) -> Dict[int, int]:
        return self.audit.replay_transfer_counts()

    def rebuild_audit_cache(self) -> int:
        return self.audit.rebuild()


def open_registry(
    uri: str = "memory://",
    *,
    administrator: str,
    limits: Optional[RegistryLimits] = None,
    metrics: Optional[RegistryMetrics] = None,
) -> AssetRegistry:
    """Open (or create) the KV store at `uri` and wrap it in an AssetRegistry."""
    kv = open_kv(uri)
    try:
        return AssetRegistry(kv, administrator=administrator, limits=limits, metrics=metrics)
    except RegistryError:
        kv.close()
        raise


__all__ = ["AssetRegistry", "AssetRecord", "BulkMintResult", "open_registry"]
