"""
Liveness and readiness checks
"""

import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.infrastructure.database import get_db
from app.infrastructure.redis_client import ping_redis
from app.infrastructure.settings import get_settings
from app.schemas.common import HealthResponse, ReadyResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Process is up. Touches no backing service."""
    return HealthResponse(status="ok")


def _database_state(db: Session) -> str:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Readiness database check failed", extra={"error": str(e)})
        return "error"
    return "connected"


def _redis_state() -> str:
    # Redis only backs the rate limiter
    if not get_settings().RATE_LIMIT_ENABLED:
        return "not_required"
    return "connected" if ping_redis() else "disconnected"


@router.get("/ready", response_model=ReadyResponse, responses={503: {"model": ReadyResponse}})
async def ready(db: Session = Depends(get_db)):
    """200 when the database (and Redis, if needed) answer, 503 otherwise"""
    database = _database_state(db)
    redis = _redis_state()
    healthy = database == "connected" and redis in ("connected", "not_required")

    body = ReadyResponse(status="ok" if healthy else "not_ready", database=database, redis=redis)
    return JSONResponse(status_code=200 if healthy else 503, content=body.model_dump())
