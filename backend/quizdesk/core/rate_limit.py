"""Fixed-window rate limiting backed by Redis."""

from fastapi import Request
from redis.exceptions import RedisError

from quizdesk.core.app_exceptions import RateLimitedError
from quizdesk.core.config import settings
from quizdesk.core.logging import get_logger
from quizdesk.core.redis_client import RedisUnavailableError, get_redis_client
from quizdesk.core.security_logging import SecurityOutcome, get_client_ip, log_security_event

logger = get_logger(__name__)


def rate_limit(key: str, limit: int, window_seconds: int) -> tuple[bool, int, int]:
    """
    Count one hit against ``key``.

    Returns:
        Tuple of (allowed, remaining, reset_seconds). Without Redis the
        request is allowed unless REDIS_REQUIRED is set.
    """
    try:
        redis_client = get_redis_client()
    except RedisUnavailableError:
        logger.error("rate_limit_redis_required", extra={"key": key})
        return False, 0, window_seconds
    if redis_client is None:
        return True, limit, window_seconds

    try:
        count = redis_client.incr(key)
        if count == 1:
            redis_client.expire(key, window_seconds)
        ttl = max(redis_client.ttl(key), 0)
        if count > limit:
            return False, 0, ttl
        return True, limit - count, ttl
    except RedisError as e:
        logger.error("rate_limit_check_failed", extra={"key": key, "error": str(e)})
        if settings.REDIS_REQUIRED:
            return False, 0, window_seconds
        return True, limit, window_seconds


def check_rate_limit_and_raise(
    key: str, limit: int, window_seconds: int, request: Request, event_type: str = "rate_limited"
) -> None:
    """Raise RateLimitedError (429, Retry-After) when ``key`` is over its limit."""
    allowed, _remaining, reset_seconds = rate_limit(key, limit, window_seconds)
    if allowed:
        return

    log_security_event(
        request,
        event_type=event_type,
        outcome=SecurityOutcome.DENY,
        reason_code="RATE_LIMITED",
    )
    raise RateLimitedError(details={"retry_after_seconds": reset_seconds})


def normalize_email_for_key(email: str) -> str:
    return email.lower().strip()


def limit_login_by_ip(request: Request) -> None:
    """Dependency for the login routes: attempts per client address."""
    check_rate_limit_and_raise(
        f"rl:login:ip:{get_client_ip(request)}",
        settings.RL_LOGIN_IP_LIMIT,
        settings.RL_LOGIN_IP_WINDOW,
        request,
        event_type="rate_limited_login_ip",
    )


def limit_login_by_email(email: str, request: Request) -> None:
    """Attempts per target email, shared by all three role stores."""
    check_rate_limit_and_raise(
        f"rl:login:email:{normalize_email_for_key(email)}",
        settings.RL_LOGIN_EMAIL_LIMIT,
        settings.RL_LOGIN_EMAIL_WINDOW,
        request,
        event_type="rate_limited_login_email",
    )
