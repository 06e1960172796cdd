from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request

from ...version import version_info

router = APIRouter(tags=["health"])

_PROCESS_START = time.time()


def _uptime_seconds() -> float:
    return max(0.0, time.time() - _PROCESS_START)


@router.get("/healthz", summary="Liveness probe", response_model=None)
def healthz(request: Request) -> Dict[str, Any]:
    """
    Liveness probe: 200 while the process serves requests and the store
    answers a read.
    """
    registry = request.app.state.registry
    return {
        "status": "ok",
        "total_minted": registry.total_minted(),
        "uptime_seconds": round(_uptime_seconds(), 3),
    }


@router.get("/version", summary="Service version", response_model=None)
def version() -> Dict[str, Any]:
    meta: Dict[str, Any] = dict(version_info())
    meta["started_at"] = datetime.fromtimestamp(_PROCESS_START, tz=timezone.utc).isoformat()
    return meta