"""
asset_registry.limits: numeric bounds and policy switches for the core.

The registry core only needs a handful of settings; they travel as a frozen
dataclass so `AssetRegistry` can be constructed without the service-level
configuration layer (pydantic-settings) being importable.

  - max_bulk           (int)  default: 50  : bulk-mint batch bound
  - metadata_max_len   (int)  default: 256 : metadata length bound, may only
                                             be tightened below 256
  - bulk_mode          (str)  default: "partial"

Bulk modes
----------
"partial"  Items whose metadata fails validation are skipped; the remaining
           items are minted. Callers compare the returned id count with the
           requested count to detect partial application.
"atomic"   Any invalid item rejects the whole call with MetadataInvalid and
           nothing is minted.

Usage:
    from asset_registry.limits import RegistryLimits
    limits = RegistryLimits(max_bulk=10, bulk_mode="atomic")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .errors import RegistryConfigError

METADATA_MIN_LEN = 1
DEFAULT_METADATA_MAX_LEN = 256
DEFAULT_MAX_BULK = 50

BULK_PARTIAL = "partial"
BULK_ATOMIC = "atomic"
BULK_MODES = (BULK_PARTIAL, BULK_ATOMIC)


@dataclass(frozen=True)
class RegistryLimits:
    max_bulk: int = DEFAULT_MAX_BULK
    metadata_max_len: int = DEFAULT_METADATA_MAX_LEN
    bulk_mode: str = BULK_PARTIAL

    def __post_init__(self) -> None:
        if not isinstance(self.max_bulk, int) or self.max_bulk < 1:
            raise RegistryConfigError("max_bulk must be a positive int", max_bulk=self.max_bulk)
        if (
            not isinstance(self.metadata_max_len, int)
            or not METADATA_MIN_LEN <= self.metadata_max_len <= DEFAULT_METADATA_MAX_LEN
        ):
            raise RegistryConfigError(
                f"metadata_max_len must be within [{METADATA_MIN_LEN}, {DEFAULT_METADATA_MAX_LEN}]",
                metadata_max_len=self.metadata_max_len,
            )
        if self.bulk_mode not in BULK_MODES:
            raise RegistryConfigError(
                f"bulk_mode must be one of {BULK_MODES}", bulk_mode=self.bulk_mode
            )

    @property
    def atomic_bulk(self) -> bool:
        return self.bulk_mode == BULK_ATOMIC

    def as_dict(self) -> Dict[str, Any]:
        return {
            "max_bulk": self.max_bulk,
            "metadata_max_len": self.metadata_max_len,
            "bulk_mode": self.bulk_mode,
        }


DEFAULT_LIMITS = RegistryLimits()

__all__ = [
    "RegistryLimits",
    "DEFAULT_LIMITS",
    "METADATA_MIN_LEN",
    "DEFAULT_METADATA_MAX_LEN",
    "DEFAULT_MAX_BULK",
    "BULK_PARTIAL",
    "BULK_ATOMIC",
    "BULK_MODES",
]
