"""Lazily connected Redis client for login rate limiting.

A failed connection is not retried on every request: callers get ``None``
until ``RECONNECT_INTERVAL_SECONDS`` have passed.
"""

import time

import redis
from redis.exceptions import RedisError

from quizdesk.core.config import settings
from quizdesk.core.logging import get_logger

logger = get_logger(__name__)

RECONNECT_INTERVAL_SECONDS = 30

_client: redis.Redis | None = None
_next_attempt_at = 0.0


class RedisUnavailableError(RuntimeError):
    """Redis is required but cannot be reached."""


def _connect() -> redis.Redis:
    client = redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=1,
        socket_timeout=1,
        health_check_interval=30,
    )
    client.ping()
    return client


def get_redis_client() -> redis.Redis | None:
    """Connected client, or None when Redis is disabled or currently down.

    Raises:
        RedisUnavailableError: Connection failed and REDIS_REQUIRED is set
    """
    global _client, _next_attempt_at

    if not settings.REDIS_ENABLED or not settings.REDIS_URL:
        return None
    if _client is not None:
        return _client
    if time.monotonic() < _next_attempt_at and not settings.REDIS_REQUIRED:
        return None

    try:
        _client = _connect()
    except RedisError as e:
        _next_attempt_at = time.monotonic() + RECONNECT_INTERVAL_SECONDS
        if settings.REDIS_REQUIRED:
            raise RedisUnavailableError(f"Redis required but unreachable: {e}") from e
        logger.warning("redis_unavailable", extra={"error": str(e)})
        return None

    logger.info("redis_connected")
    return _client


def reset_redis_client() -> None:
    global _client, _next_attempt_at
    _client = None
    _next_attempt_at = 0.0


def is_redis_available() -> bool:
    try:
        client = get_redis_client()
        return client is not None and bool(client.ping())
    except (RedisError, RedisUnavailableError):
        return False


def init_redis() -> None:
    """Connect at startup; fatal only when Redis is required."""
    if not settings.REDIS_ENABLED:
        return
    if not settings.REDIS_URL:
        logger.warning("redis_url_missing", extra={"rate_limiting": "disabled"})
        return
    get_redis_client()
