from __future__ import annotations

"""
Persisted key layout for the registry stores.

    META      m:counter                -> be_u64 last allocated id
              m:administrator          -> utf-8 identity (written once)
              m:clock                  -> be_u64 logical clock of the audit log
    OWNERS    o:<id>                   -> utf-8 owner identity (live assets only)
    METADATA  d:<id>                   -> utf-8 metadata (never erased)
    DESTROYED x:<id>                   -> b"\\x01"
    TRANSFERS t:<id>                   -> be_u64 transfer counter
    LAST_OP   l:<id>                   -> utf-8 action tag
    AUDIT     a:<id>,<clock>           -> json audit record

Ids are encoded big-endian fixed width by `Prefix.key`, so prefix scans walk
assets (and an asset's audit records) in ascending order.
"""

from ..db.kv import Prefix

META = Prefix(b"m")
OWNERS = Prefix(b"o")
METADATA = Prefix(b"d")
DESTROYED = Prefix(b"x")
TRANSFERS = Prefix(b"t")
LAST_OP = Prefix(b"l")
AUDIT = Prefix(b"a")

K_COUNTER = META.key(b"counter")
K_ADMIN = META.key(b"administrator")
K_CLOCK = META.key(b"clock")

DESTROYED_FLAG = b"\x01"


def owner_key(asset_id: int) -> bytes:
    return OWNERS.key(asset_id)


def metadata_key(asset_id: int) -> bytes:
    return METADATA.key(asset_id)


def destroyed_key(asset_id: int) -> bytes:
    return DESTROYED.key(asset_id)


def transfers_key(asset_id: int) -> bytes:
    return TRANSFERS.key(asset_id)


def last_op_key(asset_id: int) -> bytes:
    return LAST_OP.key(asset_id)


def audit_key(asset_id: int, clock: int) -> bytes:
    return AUDIT.key(asset_id, clock)


def audit_prefix(asset_id: int) -> bytes:
    # Every audit key of one asset starts with the encoded id part
    return AUDIT.key(asset_id)


__all__ = [
    "META",
    "OWNERS",
    "METADATA",
    "DESTROYED",
    "TRANSFERS",
    "LAST_OP",
    "AUDIT",
    "K_COUNTER",
    "K_ADMIN",
    "K_CLOCK",
    "DESTROYED_FLAG",
    "owner_key",
    "metadata_key",
    "destroyed_key",
    "transfers_key",
    "last_op_key",
    "audit_key",
    "audit_prefix",
]
