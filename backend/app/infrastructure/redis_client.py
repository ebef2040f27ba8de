"""
Shared Redis connection for the rate limiter.

The pool connects lazily, so importing this module never touches the
network. Short timeouts keep a dead Redis from stalling requests.
"""

import logging

import redis

from app.infrastructure.settings import get_settings

logger = logging.getLogger(__name__)

_client = redis.Redis.from_url(
    get_settings().REDIS_URL,
    decode_responses=True,
    socket_connect_timeout=1,
    socket_timeout=1,
    health_check_interval=30,
)


def get_redis() -> redis.Redis:
    return _client


def ping_redis() -> bool:
    try:
        return bool(_client.ping())
    except redis.RedisError as e:
        logger.warning("Redis ping failed", extra={"error": str(e)})
        return False
