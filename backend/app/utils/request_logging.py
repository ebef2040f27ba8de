"""
Access log and HTTP metrics middleware.

Emits one structured line per request with path, method, status_code and
duration_ms, plus user_id and roles once authentication resolved a
principal. Health and scrape endpoints log at DEBUG.
"""

import logging
from time import perf_counter
from typing import Any, Dict

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.auth.principal import Principal
from app.utils.metrics import record_http_request

logger = logging.getLogger("app.access")

QUIET_PATHS = frozenset({"/health", "/ready", "/metrics"})


def _level_for(status_code: int, path: str) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.DEBUG if path in QUIET_PATHS else logging.INFO


def _access_fields(request: Request, status_code: int, elapsed: float) -> Dict[str, Any]:
    fields: Dict[str, Any] = {
        "path": request.url.path,
        "method": request.method,
        "status_code": status_code,
        "duration_ms": round(elapsed * 1000, 2),
    }
    principal = getattr(request.state, "principal", None)
    if isinstance(principal, Principal):
        fields["user_id"] = principal.subject
        fields["roles"] = ",".join(principal.roles)
    return fields


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = perf_counter()
        # An exception escaping the app is reported as a 500
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            elapsed = perf_counter() - started
            logger.log(
                _level_for(status_code, request.url.path),
                "%s %s -> %d",
                request.method,
                request.url.path,
                status_code,
                extra=_access_fields(request, status_code, elapsed),
            )
            record_http_request(request.url.path, request.method, status_code, elapsed)
