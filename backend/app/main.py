"""
LandVest Core API application.

    uvicorn app.main:app --host 0.0.0.0 --port 8000
"""

import logging
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.admin import router as admin_router
from app.api.exceptions import (
    domain_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.api.public.health import router as health_router
from app.api.public.metrics import router as metrics_router
from app.api.v1 import router as api_router
from app.infrastructure.logging_config import setup_logging
from app.infrastructure.redis_client import get_redis
from app.infrastructure.settings import Settings, get_settings
from app.services.exceptions import DomainError
from app.utils.rate_limiter import RateLimitMiddleware
from app.utils.request_logging import RequestLoggingMiddleware
from app.utils.security_headers import SecurityHeadersMiddleware
from app.utils.trace_id import TraceIDMiddleware

API_VERSION = "1.0.0"

settings = get_settings()
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


def _install_middleware(app: FastAPI, settings: Settings) -> None:
    # Starlette wraps in reverse: the last one added sees the request first,
    # so the trace id exists before anything logs.
    if settings.CORS_ENABLED:
        origins = settings.cors_allow_origins_list
        if not origins:
            logger.warning("CORS is enabled with no allowed origins; browsers will be refused")
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=settings.cors_allow_methods_list or ["*"],
            allow_headers=settings.cors_allow_headers_list or ["*"],
            allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        )
    app.add_middleware(RateLimitMiddleware, redis_client=get_redis())
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(TraceIDMiddleware)


app = FastAPI(
    title="LandVest Core API",
    description="Wallets, transaction review, plot investments and profit distribution (INR)",
    version=API_VERSION,
)

_install_middleware(app, settings)

app.add_exception_handler(DomainError, domain_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

for router in (health_router, metrics_router, api_router, admin_router):
    app.include_router(router)


@app.get("/", include_in_schema=False)
async def root():
    return {"name": "LandVest Core API", "version": API_VERSION, "currency": settings.CURRENCY}
