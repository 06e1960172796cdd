from __future__ import annotations

"""
Structured logging setup for the asset registry.

This module configures **structlog** + the stdlib ``logging`` package so that:
- Registry events (asset_minted, asset_transferred, ...) and library logs
  (uvicorn, FastAPI) are emitted through the same processors.
- Context variables (request id, caller) are merged into each event.
- Log level & format come from settings or the environment.

Quick start
-----------
    from asset_registry.logging import setup_logging, get_logger

    setup_logging(level="INFO", log_format="console")  # once at process start
    log = get_logger(__name__)
    log.info("asset_minted", asset_id=1, caller="admin")

Environment
-----------
- ASSET_REGISTRY_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- ASSET_REGISTRY_LOG_FORMAT: "json" (default) or "console"
"""

import logging
import os
from typing import Any, Dict, Iterable, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import JSONRenderer

SERVICE_NAME = "asset-registry"


def _base_processors(service_name: str, include_stacktrace: bool) -> Iterable:
    yield structlog.stdlib.add_log_level
    yield structlog.processors.TimeStamper(fmt="iso", utc=True)
    yield merge_contextvars
    yield structlog.processors.StackInfoRenderer()
    if include_stacktrace:
        yield structlog.processors.format_exc_info
    yield structlog.processors.UnicodeDecoder()

    def _ensure_service(_: logging.Logger, __: str, ev: Dict[str, Any]) -> Dict[str, Any]:
        ev.setdefault("service", service_name)
        return ev

    yield _ensure_service


def setup_logging(
    *,
    service_name: str = SERVICE_NAME,
    level: Optional[str | int] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Configure structlog + stdlib logging. Safe to call more than once; the
    last call wins.

    Parameters
    ----------
    level: str|int
        Log level. Defaults to $ASSET_REGISTRY_LOG_LEVEL or INFO.
    log_format: str
        "json" or "console". Defaults to $ASSET_REGISTRY_LOG_FORMAT or "json".
    """
    env_level = os.getenv("ASSET_REGISTRY_LOG_LEVEL", "").upper() or None
    env_format = os.getenv("ASSET_REGISTRY_LOG_FORMAT", "").lower() or None

    level = level or env_level or "INFO"
    log_format = (log_format or env_format or "json").lower()
    include_stacktrace = log_format == "json"

    processors = list(_base_processors(service_name, include_stacktrace))

    if log_format == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=False, sort_keys=False)
    else:
        renderer = JSONRenderer(sort_keys=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            *processors,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    # Route stdlib records through the same processors/renderer.
    shared_handler = logging.StreamHandler()
    shared_handler.setLevel(logging.DEBUG)
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            *processors,
        ],
    )
    shared_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(shared_handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.handlers = [shared_handler]
        lg.propagate = False
        lg.setLevel(level)

    logging.getLogger("httpx").setLevel("WARNING")


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Return a structlog logger bound to the stdlib logger `name`.
    """
    return structlog.get_logger(name) if name else structlog.get_logger()


def bind_context(**kv: Any) -> None:
    """
    Bind request-scoped key/value pairs into the structlog contextvars store.
    Typical keys: request_id, caller, method, path
    """
    structlog.contextvars.bind_contextvars(**kv)


def clear_context(*keys: str) -> None:
    """
    Clear specific keys from contextvars, or clear all if no keys provided.
    """
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)
    else:
        structlog.contextvars.clear_contextvars()


__all__ = [
    "SERVICE_NAME",
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
