"""
Exception handlers.

All failures share one body shape:

    {"error": {"code", "message", "fields"?, "details"?, "trace_id"}}

``fields`` maps a request field to its message and is present whenever
the failure belongs to a single input.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.services.exceptions import DomainError
from app.utils.trace_id import get_trace_id

logger = logging.getLogger(__name__)

_REQUEST_PARTS = ("body", "query", "path", "header")


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    fields: Optional[Mapping[str, str]] = None,
    details: Any = None,
    headers: Optional[Mapping[str, str]] = None,
) -> JSONResponse:
    error: Dict[str, Any] = {"code": code, "message": message}
    if fields:
        error["fields"] = dict(fields)
    if details:
        error["details"] = _jsonable(details)
    error["trace_id"] = get_trace_id(request)
    return JSONResponse(status_code=status_code, content={"error": error}, headers=headers)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    # Decimal amounts and exceptions carried in pydantic ctx
    return str(value)


async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    level = logging.WARNING if exc.status_code >= status.HTTP_409_CONFLICT else logging.INFO
    logger.log(
        level,
        "Domain error",
        extra={"error_code": exc.code, "error_message": exc.message, "path": request.url.path, "method": request.method},
    )
    return error_response(
        request,
        exc.status_code,
        exc.code,
        exc.message,
        fields={exc.field: exc.message} if exc.field else None,
        details=exc.details,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    headers = getattr(exc, "headers", None)
    # Auth dependencies pre-build their error body
    if isinstance(exc.detail, dict) and "error" in exc.detail:
        body = exc.detail["error"]
        return error_response(
            request, exc.status_code, body.get("code", f"HTTP_{exc.status_code}"),
            body.get("message", ""), details=body.get("details"), headers=headers,
        )
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return error_response(request, exc.status_code, f"HTTP_{exc.status_code}", message, headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = _jsonable(exc.errors())
    fields: Dict[str, str] = {}
    for problem in problems:
        name = ".".join(str(part) for part in problem.get("loc", ()) if part not in _REQUEST_PARTS) or "request"
        fields.setdefault(name, problem.get("msg", "Invalid value"))
    return error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        fields=fields,
        details=problems,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception", exc_info=exc, extra={"path": request.url.path})
    return error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "An internal error occurred"
    )
