"""
Per-client rate limiting backed by Redis sorted sets.

Requests are bucketed by route group: login and registration get the
tightest budget, then admin and customer routes. Health, metrics and docs
are never limited. If Redis is unreachable requests are let through.
"""

import logging
import time
from typing import List, NamedTuple, Optional, Tuple

from fastapi import Request, status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from app.infrastructure.settings import get_settings
from app.infrastructure.logging_config import trace_id_context
from app.utils.metrics import record_rate_limit_exceeded
from app.utils.security_logging import count_recent_blocks, log_security_event

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60
ESCALATE_AFTER_BLOCKS = 5


class Decision(NamedTuple):
    allowed: bool
    remaining: int
    limit: int
    reset_at: int


class SlidingWindowLimiter:
    """At most ``limit`` hits per key inside any ``window_seconds`` span"""

    def __init__(self, redis_client, limit: int, window_seconds: int = WINDOW_SECONDS):
        self.redis = redis_client
        self.limit = limit
        self.window_seconds = window_seconds

    def hit(self, key: str) -> Decision:
        now = time.time()
        pipe = self.redis.pipeline(transaction=False)
        pipe.zremrangebyscore(key, 0, now - self.window_seconds)
        pipe.zrange(key, 0, 0, withscores=True)
        pipe.zcard(key)
        _, oldest, used = pipe.execute()

        if used >= self.limit:
            started = oldest[0][1] if oldest else now
            return Decision(False, 0, self.limit, int(started) + self.window_seconds)

        pipe = self.redis.pipeline(transaction=False)
        pipe.zadd(key, {str(time.time_ns()): now})
        pipe.expire(key, self.window_seconds)
        pipe.execute()
        return Decision(True, self.limit - used - 1, self.limit, int(now) + self.window_seconds)


def client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For, then X-Real-IP, then the socket peer"""
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded.strip():
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP", "").strip()
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


def _rate_limited_response(group: str, decision: Decision, trace_id: str) -> JSONResponse:
    # Built here because middleware responses never reach the exception handlers
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": {
                "code": "RATE_LIMITED",
                "message": f"Too many requests. Limit is {decision.limit} per minute.",
                "details": {"group": group, "reset_at": decision.reset_at},
                "trace_id": trace_id,
            }
        },
        headers={"Retry-After": str(max(1, decision.reset_at - int(time.time())))},
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, redis_client):
        super().__init__(app)
        self.redis = redis_client
        self.settings = get_settings()
        # Checked in order, first matching prefix wins
        self.groups: List[Tuple[str, str, SlidingWindowLimiter]] = [
            ("auth", f"{self.settings.API_PREFIX}/auth/", SlidingWindowLimiter(redis_client, self.settings.RL_AUTH_PER_MIN)),
            ("admin", f"{self.settings.ADMIN_PREFIX}/", SlidingWindowLimiter(redis_client, self.settings.RL_ADMIN_PER_MIN)),
            ("api", f"{self.settings.API_PREFIX}/", SlidingWindowLimiter(redis_client, self.settings.RL_API_PER_MIN)),
        ]

    def match(self, path: str) -> Optional[Tuple[str, SlidingWindowLimiter]]:
        for group, prefix, limiter in self.groups:
            if path.startswith(prefix):
                return group, limiter
        return None

    async def dispatch(self, request: Request, call_next):
        if not self.settings.RATE_LIMIT_ENABLED or request.method == "OPTIONS":
            return await call_next(request)

        matched = self.match(request.url.path)
        if matched is None:
            return await call_next(request)
        group, limiter = matched
        identifier = client_ip(request)

        try:
            decision = limiter.hit(f"ratelimit:{group}:{identifier}")
        except RedisError as e:
            logger.warning("Rate limiter unavailable, request allowed", extra={"error": str(e), "group": group})
            return await call_next(request)

        if not decision.allowed:
            trace_id = trace_id_context.get() or "unknown"
            record_rate_limit_exceeded(group=group)
            log_security_event(
                "RATE_LIMIT_EXCEEDED",
                {"group": group, "identifier": identifier, "path": request.url.path, "method": request.method},
                trace_id=trace_id,
            )
            if group != "api":
                self._escalate_repeat_offender(group, identifier, trace_id)
            return _rate_limited_response(group, decision, trace_id)

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        response.headers["X-RateLimit-Reset"] = str(decision.reset_at)
        return response

    def _escalate_repeat_offender(self, group: str, identifier: str, trace_id: str) -> None:
        try:
            blocks = count_recent_blocks(self.redis, group, identifier)
        except RedisError as e:
            logger.warning("Block tracking unavailable", extra={"error": str(e)})
            return
        if blocks >= ESCALATE_AFTER_BLOCKS:
            log_security_event(
                "REPEATED_RATE_LIMIT_BLOCKS",
                {"group": group, "identifier": identifier, "blocks": blocks},
                trace_id=trace_id,
                level=logging.ERROR,
            )
