from __future__ import annotations

"""
Assets Router

Endpoints:
  - POST /assets                       : mint one asset (administrator)
  - POST /assets/bulk                  : bulk mint (administrator)
  - GET  /assets?start=&count=         : details for a range of ids
  - GET  /assets/{id}                  : asset details
  - GET  /assets/{id}/audit            : audit records of one asset
  - POST /assets/{id}/transfer         : recipient claims the asset
  - POST /assets/{id}/destroy          : owner destroys the asset
  - PUT  /assets/{id}/metadata         : owner replaces the metadata
  - GET  /stats                        : registry-wide counters

Every call goes through the serialized registry; the caller identity comes
from the trusted header (see deps.get_caller).
"""

from typing import List

from fastapi import APIRouter, Depends, Path, Query, status

from ...errors import AssetMissing
from ..deps import SerializedRegistry, get_caller, get_service
from ..models import (AssetView, AuditEntry, BulkMintRequest, BulkMintResponse,
                      MetadataUpdate, MintRequest, MintResponse, OkResponse,
                      StatsView, TransferRequest)


router = APIRouter(tags=["assets"])


@router.post(
    "/assets",
    summary="Mint one asset",
    response_model=MintResponse,
    status_code=status.HTTP_201_CREATED,
)
def mint_asset(
    req: MintRequest,
    caller: str = Depends(get_caller),
    svc: SerializedRegistry = Depends(get_service),
) -> MintResponse:
    return MintResponse(asset_id=svc.call("mint", caller, req.metadata))


@router.post(
    "/assets/bulk",
    summary="Mint several assets; invalid items may be skipped",
    response_model=BulkMintResponse,
    status_code=status.HTTP_201_CREATED,
)
def bulk_mint_assets(
    req: BulkMintRequest,
    caller: str = Depends(get_caller),
    svc: SerializedRegistry = Depends(get_service),
) -> BulkMintResponse:
    """
    In partial mode the response lists the input indexes that were skipped
    and sets `partial`; in atomic mode any invalid item fails the call.
    """
    result = svc.call("bulk_mint_detailed", caller, req.items)
    return BulkMintResponse.from_result(result)


@router.get("/assets", summary="Details for a range of ids", response_model=List[AssetView])
def list_assets(
    start: int = Query(1, ge=1, description="First id of the range"),
    count: int = Query(20, ge=1, description="Range length (capped at the bulk limit)"),
    svc: SerializedRegistry = Depends(get_service),
) -> List[AssetView]:
    return [AssetView.from_record(r) for r in svc.call("details_range", start, count)]


@router.get("/assets/{asset_id}", summary="Asset details", response_model=AssetView)
def get_asset(
    asset_id: int = Path(..., description="Asset id"),
    svc: SerializedRegistry = Depends(get_service),
) -> AssetView:
    rec = svc.call("asset_details", asset_id)
    if rec is None:
        raise AssetMissing(asset_id)
    return AssetView.from_record(rec)


@router.get(
    "/assets/{asset_id}/audit",
    summary="Audit records of one asset, oldest first",
    response_model=List[AuditEntry],
)
def get_asset_audit(
    asset_id: int = Path(..., description="Asset id"),
    svc: SerializedRegistry = Depends(get_service),
) -> List[AuditEntry]:
    if not svc.call("exists", asset_id):
        raise AssetMissing(asset_id)
    return [AuditEntry.from_record(r) for r in svc.call("audit_records", asset_id)]


@router.post(
    "/assets/{asset_id}/transfer",
    summary="Claim an asset from its current owner",
    response_model=OkResponse,
)
def transfer_asset(
    req: TransferRequest,
    asset_id: int = Path(..., description="Asset id"),
    caller: str = Depends(get_caller),
    svc: SerializedRegistry = Depends(get_service),
) -> OkResponse:
    svc.call("transfer", caller, asset_id, req.sender, req.recipient)
    return OkResponse(asset_id=asset_id)


@router.post("/assets/{asset_id}/destroy", summary="Destroy an owned asset", response_model=OkResponse)
def destroy_asset(
    asset_id: int = Path(..., description="Asset id"),
    caller: str = Depends(get_caller),
    svc: SerializedRegistry = Depends(get_service),
) -> OkResponse:
    svc.call("destroy", caller, asset_id)
    return OkResponse(asset_id=asset_id)


@router.put("/assets/{asset_id}/metadata", summary="Replace asset metadata", response_model=OkResponse)
def update_asset_metadata(
    req: MetadataUpdate,
    asset_id: int = Path(..., description="Asset id"),
    caller: str = Depends(get_caller),
    svc: SerializedRegistry = Depends(get_service),
) -> OkResponse:
    svc.call("update_metadata", caller, asset_id, req.metadata)
    return OkResponse(asset_id=asset_id)


@router.get("/stats", summary="Registry counters", response_model=StatsView)
def get_stats(svc: SerializedRegistry = Depends(get_service)) -> StatsView:
    return StatsView(**svc.call("stats"))