"""
Security event logging.

Events go to the ``app.security`` logger so they can be routed separately
from request logs. Credential-looking keys are masked before emitting.
"""

import logging
import time
from typing import Any, Dict, Mapping, Optional

from app.infrastructure.logging_config import trace_id_context

logger = logging.getLogger("app.security")

_MASKED = "[REDACTED]"
_CREDENTIAL_HINTS = ("password", "secret", "token", "authorization", "api_key")


def redact(details: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        key: _MASKED if any(hint in key.lower() for hint in _CREDENTIAL_HINTS) else value
        for key, value in details.items()
    }


def log_security_event(
    action: str,
    details: Mapping[str, Any],
    trace_id: Optional[str] = None,
    level: int = logging.WARNING,
) -> None:
    """
    Emit one security event.

    Args:
        action: Event name, e.g. RATE_LIMIT_EXCEEDED or LOGIN_FAILED
        details: Context for the event; credential values are masked
        trace_id: Defaults to the current request's trace id
        level: Log level, WARNING unless the caller escalates
    """
    logger.log(
        level,
        "Security event",
        extra={
            "security_action": action,
            "trace_id": trace_id or trace_id_context.get() or "unknown",
            "details": redact(details),
        },
    )


def count_recent_blocks(redis_client, group: str, identifier: str, window_seconds: int = 600) -> int:
    """
    Remember one more rate-limit block for a client and return how many
    blocks it collected inside the window.
    """
    key = f"ratelimit-blocks:{group}:{identifier}"
    now = time.time()
    pipe = redis_client.pipeline(transaction=False)
    pipe.zremrangebyscore(key, 0, now - window_seconds)
    pipe.zadd(key, {str(time.time_ns()): now})
    pipe.zcard(key)
    pipe.expire(key, window_seconds)
    _, _, blocks, _ = pipe.execute()
    return int(blocks)
