from __future__ import annotations

"""
Registry KV surface
===================

The registry stores only talk to a byte-keyed store through this protocol.
All writes go through `KV.batch()`: a lifecycle operation runs its checks,
then stages every key it touches in one batch, which commits on clean exit
and rolls back if an exception escapes.

Keys
----
`Prefix(ns)` names one namespace (owners, metadata, audit records, ...).
`.key(*parts)` appends each part as a one-byte length followed by the part
bytes. Integer parts are 8-byte big-endian so asset ids sort numerically
inside a namespace, and `Prefix.key(asset_id)` is itself a prefix of every
`Prefix.key(asset_id, n)`.

>>> OWNERS = Prefix(b"o")
>>> OWNERS.key(7)
b'o:\\x08\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x07'
"""

from typing import Iterator, Optional, Protocol, Tuple, Union, runtime_checkable

KeyPart = Union[bytes, int]

MAX_PART_LEN = 0xFF


class Prefix:
    __slots__ = ("_raw",)

    def __init__(self, ns: bytes) -> None:
        if not ns or b":" in ns:
            raise ValueError(f"invalid namespace {ns!r}")
        self._raw = bytes(ns) + b":"

    @property
    def raw(self) -> bytes:
        return self._raw

    def key(self, *parts: KeyPart) -> bytes:
        out = bytearray(self._raw)
        for part in parts:
            pb = be_u64(part) if isinstance(part, int) else bytes(part)
            if len(pb) > MAX_PART_LEN:
                raise ValueError(f"key part too long: {len(pb)} bytes")
            out.append(len(pb))
            out.extend(pb)
        return bytes(out)

    def __repr__(self) -> str:
        return f"Prefix({self._raw!r})"


def be_u64(n: int) -> bytes:
    if not (0 <= n < (1 << 64)):
        raise ValueError("be_u64 out of range")
    return n.to_bytes(8, "big")


def read_u64(raw: Optional[bytes], default: int = 0) -> int:
    """Decode a counter written by `be_u64`; a missing key reads as `default`."""
    if not raw:
        return default
    return int.from_bytes(raw, "big", signed=False)


@runtime_checkable
class Batch(Protocol):
    def put(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...

    def __enter__(self) -> "Batch": ...
    def __exit__(self, exc_type, exc, tb) -> Optional[bool]: ...


@runtime_checkable
class KV(Protocol):
    def get(self, key: bytes) -> Optional[bytes]: ...
    def has(self, key: bytes) -> bool: ...

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """(key, value) pairs under `prefix`, in byte order of the keys."""
        ...

    def batch(self) -> Batch: ...
    def close(self) -> None: ...


__all__ = ["KV", "Batch", "Prefix", "be_u64", "read_u64"]
