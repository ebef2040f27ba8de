"""
Security headers middleware
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.infrastructure.settings import get_settings

_STATIC_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=(), payment=()",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add browser hardening headers to every response.

    Wallet balances, transactions and admin data must never be cached by
    browsers or proxies, so responses under the customer and admin prefixes
    also get Cache-Control: no-store. HSTS is only sent when ENABLE_HSTS is on.
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        settings = get_settings()

        for name, value in _STATIC_HEADERS.items():
            response.headers.setdefault(name, value)

        path = request.url.path
        if path.startswith(settings.API_PREFIX) or path.startswith(settings.ADMIN_PREFIX):
            response.headers["Cache-Control"] = "no-store"
            response.headers["Pragma"] = "no-cache"

        if settings.ENABLE_HSTS:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
