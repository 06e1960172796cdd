from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from ..config import Settings, load_config
from ..logging import get_logger
from ..registry import AssetRegistry
from ..version import __version__
from .deps import SerializedRegistry
from .errors import install_error_handlers
from .metrics import setup_metrics
from .request_id import RequestIdMiddleware
from .routers import admin_router, assets_router, health_router

log = get_logger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    App lifespan: the registry is opened by `create_app`; close it on
    shutdown when the app opened it itself.
    """
    registry: AssetRegistry = app.state.registry
    log.info(
        "registry_api_started",
        administrator=registry.administrator,
        total_minted=registry.total_minted(),
        limits=registry.limits.as_dict(),
    )
    try:
        yield
    finally:
        if app.state.owns_registry:
            registry.close()
        log.info("registry_api_stopped")


def create_app(
    settings: Optional[Settings] = None, registry: Optional[AssetRegistry] = None
) -> FastAPI:
    """
    FastAPI factory. Opens the registry named by the settings unless one is
    passed in, then mounts middleware, error handlers, metrics and routers.
    """
    cfg = settings or load_config()
    reg = registry if registry is not None else AssetRegistry.from_config(cfg)

    app = FastAPI(
        title="Asset Registry",
        version=__version__,
        lifespan=_lifespan,
    )
    app.state.settings = cfg
    app.state.registry = reg
    app.state.service = SerializedRegistry(reg)
    app.state.owns_registry = registry is None

    app.add_middleware(RequestIdMiddleware)
    install_error_handlers(app)
    setup_metrics(app, reg.metrics)

    app.include_router(health_router)
    app.include_router(assets_router)
    app.include_router(admin_router)

    return app


__all__ = ["create_app"]
