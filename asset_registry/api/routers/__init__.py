from __future__ import annotations

from .admin import router as admin_router
from .assets import router as assets_router
from .health import router as health_router

__all__ = ["admin_router", "assets_router", "health_router"]
