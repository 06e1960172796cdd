"""
asset_registry.errors
---------------------

Error taxonomy for the asset lifecycle state machine.

Design goals
------------
- One root `RegistryError` with a machine-friendly `code` and optional `data`.
- One concrete subclass per rejection kind of the lifecycle guard:
  Unauthorized, OwnershipViolation, AssetMissing, AlreadyDestroyed,
  MetadataInvalid, MetadataPermission, BulkLimitExceeded.
- All lifecycle errors are synchronous, locally detected and *not* retryable.
- Safe JSON representation (`to_dict`) suitable for logs and HTTP bridges.

This module uses only the stdlib so the registry core stays importable
without the service dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping


class RegistryErrorCode(str, Enum):
    # Lifecycle guard rejections
    UNAUTHORIZED = "REGISTRY/UNAUTHORIZED"
    OWNERSHIP_VIOLATION = "REGISTRY/OWNERSHIP_VIOLATION"
    ASSET_MISSING = "REGISTRY/ASSET_MISSING"
    ALREADY_DESTROYED = "REGISTRY/ALREADY_DESTROYED"
    METADATA_INVALID = "REGISTRY/METADATA_INVALID"
    METADATA_PERMISSION = "REGISTRY/METADATA_PERMISSION"
    BULK_LIMIT_EXCEEDED = "REGISTRY/BULK_LIMIT_EXCEEDED"

    # Setup / environment
    CONFIG = "REGISTRY/CONFIG"
    CONTEXT = "REGISTRY/CONTEXT"


@dataclass(eq=False)
class RegistryError(Exception):
    """
    Root error for the registry.

    Attributes
    ----------
    code: str
        Machine-stable error code (see RegistryErrorCode).
    message: str
        Human hint suitable for logs.
    data: dict
        Machine data (asset id, caller, limits). Must be JSON-serializable.
    retryable: bool
        Always False for lifecycle rejections: retrying the same call against
        the same state yields the same outcome.
    """

    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    retryable: bool = False

    def __post_init__(self) -> None:
        super().__init__(f"{getattr(self.code, 'value', self.code)}: {self.message}")

    @property
    def kind(self) -> str:
        """Short name of the rejection, e.g. ``"AssetMissing"``."""
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        """JSON-safe shape suitable for logs/HTTP bridges."""
        return {
            "code": str(getattr(self.code, "value", self.code)),
            "kind": self.kind,
            "message": self.message,
            "data": _jsonmap(self.data),
            "retryable": self.retryable,
        }

    def __str__(self) -> str:  # pragma: no cover - human formatting
        code = getattr(self.code, "value", self.code)
        parts = [f"{code}: {self.message}"]
        if self.data:
            preview = ", ".join(f"{k}={_preview(v)}" for k, v in self.data.items())
            parts.append(f"[{preview}]")
        return " ".join(parts)


# Concrete lifecycle rejections


class Unauthorized(RegistryError):
    """Caller lacks the administrator role required by the operation."""

    def __init__(self, message: str = "caller is not the administrator", **data: Any) -> None:
        super().__init__(
            code=RegistryErrorCode.UNAUTHORIZED, message=message, data=_jsonmap(data)
        )


class OwnershipViolation(RegistryError):
    """Caller is not the current owner, or the transfer recipient mismatches."""

    def __init__(self, message: str = "caller does not hold the asset", **data: Any) -> None:
        super().__init__(
            code=RegistryErrorCode.OWNERSHIP_VIOLATION,
            message=message,
            data=_jsonmap(data),
        )


class AssetMissing(RegistryError):
    def __init__(self, asset_id: int, **data: Any) -> None:
        super().__init__(
            code=RegistryErrorCode.ASSET_MISSING,
            message=f"asset {asset_id} was never minted",
            data=_jsonmap({"asset_id": asset_id, **data}),
        )


class AlreadyDestroyed(RegistryError):
    def __init__(self, asset_id: int, **data: Any) -> None:
        super().__init__(
            code=RegistryErrorCode.ALREADY_DESTROYED,
            message=f"asset {asset_id} is destroyed",
            data=_jsonmap({"asset_id": asset_id, **data}),
        )


class MetadataInvalid(RegistryError):
    """Metadata violates the length bound (or is not a string)."""

    def __init__(self, message: str = "metadata out of bounds", **data: Any) -> None:
        super().__init__(
            code=RegistryErrorCode.METADATA_INVALID,
            message=message,
            data=_jsonmap(data),
        )


class MetadataPermission(RegistryError):
    def __init__(self, asset_id: int, **data: Any) -> None:
        super().__init__(
            code=RegistryErrorCode.METADATA_PERMISSION,
            message=f"only the owner may change metadata of asset {asset_id}",
            data=_jsonmap({"asset_id": asset_id, **data}),
        )


class BulkLimitExceeded(RegistryError):
    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            code=RegistryErrorCode.BULK_LIMIT_EXCEEDED,
            message=f"bulk size {size} outside [1, {limit}]",
            data={"size": size, "limit": limit},
        )


# Setup / environment errors


class RegistryConfigError(RegistryError):
    def __init__(self, message: str = "invalid registry configuration", **data: Any) -> None:
        super().__init__(
            code=RegistryErrorCode.CONFIG, message=message, data=_jsonmap(data)
        )


class ContextError(RegistryError):
    """Caller identity supplied by the host is empty or malformed."""

    def __init__(self, message: str = "invalid caller identity", **data: Any) -> None:
        super().__init__(
            code=RegistryErrorCode.CONTEXT, message=message, data=_jsonmap(data)
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _jsonmap(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: _coerce_json(v) for k, v in data.items()}


def _coerce_json(v: Any) -> Any:
    # Keep JSON primitives; stringify the rest; hex-encode bytes.
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return v.hex()
    return str(v)


def _preview(v: Any, limit: int = 96) -> str:
    s = str(_coerce_json(v))
    return s if len(s) <= limit else s[:limit] + "…"


# ---------------------------------------------------------------------------
# Minimal mapping to HTTP (opt-in)
# ---------------------------------------------------------------------------

HTTP_MAP = {
    RegistryErrorCode.UNAUTHORIZED: 403,
    RegistryErrorCode.OWNERSHIP_VIOLATION: 403,
    RegistryErrorCode.METADATA_PERMISSION: 403,
    RegistryErrorCode.ASSET_MISSING: 404,
    RegistryErrorCode.ALREADY_DESTROYED: 409,
    RegistryErrorCode.METADATA_INVALID: 422,
    RegistryErrorCode.BULK_LIMIT_EXCEEDED: 422,
    RegistryErrorCode.CONFIG: 500,
    RegistryErrorCode.CONTEXT: 401,
}


def http_status_for(err: RegistryError) -> int:
    """Best-effort HTTP status mapping for the REST bridge."""
    try:
        return HTTP_MAP.get(RegistryErrorCode(err.code), 500)
    except ValueError:
        return 500


__all__ = [
    "RegistryErrorCode",
    "RegistryError",
    "Unauthorized",
    "OwnershipViolation",
    "AssetMissing",
    "AlreadyDestroyed",
    "MetadataInvalid",
    "MetadataPermission",
    "BulkLimitExceeded",
    "RegistryConfigError",
    "ContextError",
    "HTTP_MAP",
    "http_status_for",
]
