"""
Prometheus scrape endpoint.

Closed by default. A scrape is let through when METRICS_PUBLIC is set,
when X-Metrics-Token matches METRICS_TOKEN, or when the caller presents
an ADMIN access token.
"""

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import Response

from app.auth.dependencies import AuthError, decode_bearer
from app.core.security.models import Role
from app.infrastructure.settings import get_settings
from app.utils.metrics import CONTENT_TYPE_LATEST, get_metrics_output

logger = logging.getLogger(__name__)

router = APIRouter(tags=["observability"])


def _token_matches(presented: Optional[str], expected: str) -> bool:
    return bool(expected and presented) and hmac.compare_digest(presented.encode(), expected.encode())


async def verify_metrics_access(
    request: Request,
    x_metrics_token: Optional[str] = Header(None, alias="X-Metrics-Token"),
) -> None:
    settings = get_settings()
    if settings.METRICS_PUBLIC or _token_matches(x_metrics_token, settings.METRICS_TOKEN):
        return

    authorization = request.headers.get("Authorization")
    if authorization:
        try:
            claims = decode_bearer(authorization)
        except AuthError as e:
            logger.info("Metrics scrape with unusable token", extra={"reason": e.detail["error"]["code"]})
        else:
            if Role.ADMIN.value in [str(r).upper() for r in claims.get("roles", [])]:
                return

    raise AuthError(
        "FORBIDDEN",
        "Metrics are private. Send X-Metrics-Token or an ADMIN bearer token.",
        status.HTTP_403_FORBIDDEN,
    )


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Prometheus exposition format. Private unless METRICS_PUBLIC=true.",
    dependencies=[Depends(verify_metrics_access)],
)
async def get_metrics() -> Response:
    return Response(content=get_metrics_output(), media_type=CONTENT_TYPE_LATEST)
