from __future__ import annotations

"""
Request/response models for the registry HTTP API.

Metadata fields are plain strings. Length bounds are enforced by the
registry's lifecycle guard, so violations surface with the same
`REGISTRY/METADATA_INVALID` code as on every other call path.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..registry import AssetRecord, AuditRecord, BulkMintResult


class MintRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    metadata: str = Field(..., description="Opaque metadata string (1..max length)")


class MintResponse(BaseModel):
    asset_id: int


class BulkMintRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    items: List[str] = Field(..., description="Metadata strings, one asset per item, in order")


class BulkMintResponse(BaseModel):
    ids: List[int]
    requested: int
    rejected: List[int] = Field(default_factory=list, description="Input indexes that were skipped")
    partial: bool

    @classmethod
    def from_result(cls, result: BulkMintResult) -> "BulkMintResponse":
        return cls(**result.to_dict())


class TransferRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sender: str = Field(..., description="Current owner of the asset")
    recipient: str = Field(..., description="New owner; must match the caller")


class MetadataUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    metadata: str


class OkResponse(BaseModel):
    ok: bool = True
    asset_id: int


class AssetView(BaseModel):
    asset_id: int
    metadata: str
    owner: Optional[str] = None
    destroyed: bool
    transfer_count: int
    last_operation: Optional[str] = None

    @classmethod
    def from_record(cls, rec: AssetRecord) -> "AssetView":
        return cls(**rec.to_dict())


class AuditEntry(BaseModel):
    clock: int
    asset_id: int
    action: str
    actor: str
    details: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_record(cls, rec: AuditRecord) -> "AuditEntry":
        return cls(**rec.to_dict())


class StatsView(BaseModel):
    administrator: str
    total_minted: int
    live_assets: int
    limits: Dict[str, Any]


class RebuildResponse(BaseModel):
    assets: int
    transfer_counts: Dict[str, int]


__all__ = [
    "MintRequest",
    "MintResponse",
    "BulkMintRequest",
    "BulkMintResponse",
    "TransferRequest",
    "MetadataUpdate",
    "OkResponse",
    "AssetView",
    "AuditEntry",
    "StatsView",
    "RebuildResponse",
]
