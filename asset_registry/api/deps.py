from __future__ import annotations

"""
Request dependencies: trusted caller identity and serialized registry access.

The registry expects operations to arrive one at a time. Sync routes run in
the threadpool, so every registry call from the API goes through
`SerializedRegistry`, which holds a single process-wide lock for the duration
of the call.
"""

import threading
from typing import Any

from fastapi import HTTPException, Request, status

from ..context import normalize_identity
from ..logging import bind_context
from ..registry import AssetRegistry


class SerializedRegistry:
    def __init__(self, registry: AssetRegistry) -> None:
        self.registry = registry
        self._lock = threading.Lock()

    def call(self, operation: str, *args: Any) -> Any:
        fn = getattr(self.registry, operation)
        with self._lock:
            return fn(*args)


def get_service(request: Request) -> SerializedRegistry:
    return request.app.state.service


def get_caller(request: Request) -> str:
    """
    Identity of the principal, read from the configured trusted header.
    A missing or blank header is 401; the proxy in front of the API is
    responsible for authenticating it.
    """
    header = request.app.state.settings.caller_header
    raw = request.headers.get(header)
    if raw is None or not raw.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"missing caller identity header {header}",
        )
    caller = normalize_identity(raw)
    request.state.caller = caller
    bind_context(caller=caller)
    return caller


__all__ = ["SerializedRegistry", "get_service", "get_caller"]
