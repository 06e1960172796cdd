from __future__ import annotations

"""
Admin Router

Endpoints:
  - POST /admin/assets/{id}/destroy   : administrative destruction
  - POST /admin/audit/rebuild         : recompute transfer counters and
                                        last-operation markers from the
                                        audit records
"""

from fastapi import APIRouter, Depends, Path

from ...logging import get_logger
from ..deps import SerializedRegistry, get_caller, get_service
from ..models import OkResponse, RebuildResponse

log = get_logger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post(
    "/assets/{asset_id}/destroy",
    summary="Destroy any live asset (administrator)",
    response_model=OkResponse,
)
def admin_destroy_asset(
    asset_id: int = Path(..., description="Asset id"),
    caller: str = Depends(get_caller),
    svc: SerializedRegistry = Depends(get_service),
) -> OkResponse:
    svc.call("admin_destroy", caller, asset_id)
    return OkResponse(asset_id=asset_id)


@router.post("/audit/rebuild", summary="Rebuild audit-derived counters", response_model=RebuildResponse)
def rebuild_audit(
    caller: str = Depends(get_caller),
    svc: SerializedRegistry = Depends(get_service),
) -> RebuildResponse:
    svc.registry.guard.require_admin(caller, operation="audit_rebuild")
    assets = svc.call("rebuild_audit_cache")
    counts = svc.call("replay_transfer_counts")
    log.info("audit_rebuilt", assets=assets, caller=caller)
    return RebuildResponse(assets=assets, transfer_counts={str(k): v for k, v in counts.items()})