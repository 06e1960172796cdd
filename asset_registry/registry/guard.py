from __future__ import annotations

"""
Lifecycle guard
===============

Every mutating registry operation passes through these checks before a
single byte is written. Each check either returns normally or raises the
specific `RegistryError` subclass; none of them write.

Rules
-----
- Format:        1 <= len(metadata) <= limits.metadata_max_len, on every
                 write path (mint, bulk mint, update). Values must be `str`
                 and UTF-8 encodable.
- Authorization: mint / bulk mint / admin destroy -> administrator only;
                 transfer -> sender is the current owner AND the caller is the
                 recipient; destroy -> owner; metadata update -> owner.
- Existence:     an id exists iff metadata is recorded for it.
- Bulk size:     1 <= n <= limits.max_bulk, checked before any item.

Check order per operation is fixed (first failing check wins):

    transfer         AssetMissing -> AlreadyDestroyed -> OwnershipViolation
    destroy          AssetMissing -> AlreadyDestroyed -> OwnershipViolation
    admin_destroy    Unauthorized -> AssetMissing -> AlreadyDestroyed
    update_metadata  AssetMissing -> AlreadyDestroyed -> MetadataPermission
                     -> MetadataInvalid
"""

from typing import Any, Optional, Sequence, Tuple

from ..context import normalize_identity
from ..errors import (AlreadyDestroyed, AssetMissing, BulkLimitExceeded,
                      ContextError, MetadataInvalid, MetadataPermission,
                      OwnershipViolation, Unauthorized)
from ..limits import METADATA_MIN_LEN, RegistryLimits
from .ledger import OwnershipLedger
from .metadata import MetadataStore


def validate_metadata(value: Any, *, max_len: int, index: Optional[int] = None) -> str:
    """
    Return `value` unchanged if it is a valid metadata string, else raise
    MetadataInvalid. `index` tags the item position for bulk mints.
    """
    extra = {} if index is None else {"index": index}
    if not isinstance(value, str):
        raise MetadataInvalid(
            "metadata must be a string", py_type=type(value).__name__, **extra
        )
    n = len(value)
    if n < METADATA_MIN_LEN or n > max_len:
        raise MetadataInvalid(
            f"metadata length {n} outside [{METADATA_MIN_LEN}, {max_len}]",
            length=n,
            limit=max_len,
            **extra,
        )
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise MetadataInvalid("metadata is not valid unicode text", **extra) from None
    return value


def _party(value: Any, field: str) -> Optional[str]:
    try:
        return normalize_identity(value, field=field)
    except ContextError:
        return None


def _as_asset_id(asset_id: Any) -> int:
    # bool is an int subclass; True is not asset 1
    if isinstance(asset_id, bool) or not isinstance(asset_id, int) or asset_id < 1:
        raise AssetMissing(asset_id)
    return asset_id


class LifecycleGuard:
    def __init__(
        self,
        ledger: OwnershipLedger,
        metadata: MetadataStore,
        *,
        administrator: str,
        limits: RegistryLimits,
    ) -> None:
        self._ledger = ledger
        self._metadata = metadata
        self._admin = administrator
        self._limits = limits

    @property
    def administrator(self) -> str:
        return self._admin

    # --- primitives ---

    def require_admin(self, caller: str, *, operation: str) -> None:
        if caller != self._admin:
            raise Unauthorized(
                f"{operation} is restricted to the administrator",
                caller=caller,
                operation=operation,
            )

    def require_live(self, asset_id: Any) -> int:
        """Existence then destruction check; returns the validated id."""
        aid = _as_asset_id(asset_id)
        if not self._metadata.exists(aid):
            raise AssetMissing(aid)
        if self._ledger.is_destroyed(aid):
            raise AlreadyDestroyed(aid)
        return aid

    def check_metadata(self, value: Any, *, index: Optional[int] = None) -> str:
        return validate_metadata(value, max_len=self._limits.metadata_max_len, index=index)

    def check_bulk_size(self, items: Sequence[Any]) -> int:
        n = len(items)
        if n < 1 or n > self._limits.max_bulk:
            raise BulkLimitExceeded(n, self._limits.max_bulk)
        return n

    # --- per-operation guards ---

    def check_mint(self, caller: str, metadata: Any) -> str:
        self.require_admin(caller, operation="mint")
        return self.check_metadata(metadata)

    def check_transfer(
        self, caller: str, asset_id: Any, sender: Any, recipient: Any
    ) -> Tuple[int, str, str]:
        """
        Returns the validated id with the normalized sender and recipient.
        A sender or recipient that is not a usable identity can never match
        the owner or the caller, so it fails as an OwnershipViolation.
        """
        aid = self.require_live(asset_id)
        src = _party(sender, "sender")
        dst = _party(recipient, "recipient")
        owner = self._ledger.owner_of(aid)
        if src is None or owner != src:
            raise OwnershipViolation(
                "sender is not the current owner",
                asset_id=aid,
                sender=src if src is not None else repr(sender),
            )
        if dst is None or caller != dst:
            raise OwnershipViolation(
                "transfer must be claimed by the recipient",
                asset_id=aid,
                caller=caller,
                recipient=dst if dst is not None else repr(recipient),
            )
        return aid, src, dst

    def check_destroy(self, caller: str, asset_id: Any) -> int:
        aid = self.require_live(asset_id)
        if self._ledger.owner_of(aid) != caller:
            raise OwnershipViolation(
                "only the owner may destroy the asset", asset_id=aid, caller=caller
            )
        return aid

    def check_admin_destroy(self, caller: str, asset_id: Any) -> int:
        self.require_admin(caller, operation="admin_destroy")
        return self.require_live(asset_id)

    def check_update_metadata(self, caller: str, asset_id: Any, value: Any) -> int:
        aid = self.require_live(asset_id)
        if self._ledger.owner_of(aid) != caller:
            raise MetadataPermission(aid, caller=caller)
        self.check_metadata(value)
        return aid


__all__ = ["LifecycleGuard", "validate_metadata"]
