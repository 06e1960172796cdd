from __future__ import annotations

"""
Exception → RFC7807 "problem+json" mappers for the registry API.

- RegistryError subclasses map through `asset_registry.errors.HTTP_MAP`
  (403 authorization, 404 missing, 409 destroyed, 422 invalid input).
- Starlette/FastAPI HTTPException and request validation errors keep their
  status.
- Anything else is a 500 with the stack trace logged, never returned.

Bodies carry `request_id` when the request-id middleware has set it.
"""

from typing import Any, Dict, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..errors import RegistryError, http_status_for
from ..logging import get_logger

PROBLEM_CT = "application/problem+json"

log = get_logger(__name__)

_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
}


def _to_status_title(status_code: int) -> Tuple[int, str]:
    return status_code, _TITLES.get(status_code, "Error")


def _problem(
    request: Request,
    *,
    status: int,
    title: str,
    detail: str = "",
    code: Optional[str] = None,
    extras: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "type": "about:blank",
        "title": title,
        "status": status,
        "detail": detail,
        "instance": str(request.url.path),
        "request_id": getattr(request.state, "request_id", "") or "",
    }
    if code:
        body["code"] = code
    for k, v in (extras or {}).items():
        body.setdefault(k, v)
    return body


async def _handle_registry_error(request: Request, exc: RegistryError) -> JSONResponse:
    status, title = _to_status_title(http_status_for(exc))
    err = exc.to_dict()
    body = _problem(
        request,
        status=status,
        title=title,
        detail=exc.message,
        code=err["code"],
        extras={"kind": err["kind"], "details": err["data"]},
    )
    (log.error if status >= 500 else log.warning)("api_error", **body)
    return JSONResponse(status_code=status, content=body, media_type=PROBLEM_CT)


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    status, title = _to_status_title(int(exc.status_code))
    detail = str(exc.detail) if getattr(exc, "detail", None) else ""
    body = _problem(request, status=status, title=title, detail=detail)
    (log.warning if 400 <= status < 500 else log.error)("http_exception", **body)
    return JSONResponse(
        status_code=status,
        content=body,
        media_type=PROBLEM_CT,
        headers=getattr(exc, "headers", None),
    )


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    status, title = _to_status_title(422)
    body = _problem(
        request,
        status=status,
        title=title,
        detail="Request validation failed.",
        extras={"errors": _jsonable_errors(exc.errors())},
    )
    log.warning("validation_error", **body)
    return JSONResponse(status_code=status, content=body, media_type=PROBLEM_CT)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    status, title = _to_status_title(500)
    body = _problem(
        request,
        status=status,
        title=title,
        detail="An unexpected error occurred. Retry or report the request_id.",
    )
    log.exception("unhandled_exception", **body)
    return JSONResponse(status_code=status, content=body, media_type=PROBLEM_CT)


def _jsonable_errors(errors: Any) -> Any:
    # pydantic may put exception objects under "ctx"
    out = []
    for e in errors:
        e = dict(e)
        if "ctx" in e:
            e["ctx"] = {k: str(v) for k, v in e["ctx"].items()}
        out.append(e)
    return out


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RegistryError, _handle_registry_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)


__all__ = ["install_error_handlers", "PROBLEM_CT"]
