"""
asset_registry.registry
=======================

The asset lifecycle state machine and its stores.

Components
----------
- allocator : sequential id allocation (commit only on successful mint)
- ledger    : id -> owner, destroyed flags
- metadata  : id -> metadata (existence marker, never erased)
- guard     : validation/authorization checks run before any write
- audit     : audit records, last-op markers, transfer counters
- core      : `AssetRegistry` facade tying the above to one KV store
"""

from __future__ import annotations

from .audit import AuditLog, AuditRecord
from .core import AssetRecord, AssetRegistry, BulkMintResult, open_registry
from .guard import LifecycleGuard, validate_metadata

__all__ = [
    "AssetRegistry",
    "AssetRecord",
    "AuditLog",
    "AuditRecord",
    "BulkMintResult",
    "LifecycleGuard",
    "open_registry",
    "validate_metadata",
]
