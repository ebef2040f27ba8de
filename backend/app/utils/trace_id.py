"""
Per-request trace ids, echoed in the X-Trace-ID header and in every log line
"""

import re
import uuid
from typing import Optional
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from app.infrastructure.logging_config import trace_id_context

TRACE_HEADER = "X-Trace-ID"

# Client-supplied ids end up in logs and audit trails; anything else is replaced
_VALID_TRACE_ID = re.compile(r"^[A-Za-z0-9._\-]{1,128}$")


def generate_trace_id() -> str:
    return uuid.uuid4().hex


def resolve_trace_id(request: Request) -> str:
    """Reuse the caller's trace id when it is well formed, otherwise mint one"""
    for header in (TRACE_HEADER, "X-Request-Id", "X-Correlation-Id"):
        candidate = request.headers.get(header)
        if candidate and _VALID_TRACE_ID.match(candidate):
            return candidate
    return generate_trace_id()


class TraceIDMiddleware(BaseHTTPMiddleware):
    """Bind a trace id to the request, the logging context and the response"""

    async def dispatch(self, request: Request, call_next):
        trace_id = resolve_trace_id(request)
        request.state.trace_id = trace_id
        token = trace_id_context.set(trace_id)
        try:
            response = await call_next(request)
        finally:
            trace_id_context.reset(token)

        response.headers[TRACE_HEADER] = trace_id
        return response


def get_trace_id(request: Request) -> Optional[str]:
    """Trace id of the current request (None outside TraceIDMiddleware)"""
    return getattr(request.state, "trace_id", None)
