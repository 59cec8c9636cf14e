"""Security event logging (logins, denials, rate limiting)."""

from enum import Enum
from typing import Any

from fastapi import Request

from quizdesk.common.request_id import get_request_id
from quizdesk.core.config import settings
from quizdesk.core.logging import get_logger

logger = get_logger("quizdesk.security")


class SecurityOutcome(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    DEGRADED = "degraded"


def get_client_ip(request: Request) -> str:
    """Peer address; the first X-Forwarded-For hop when proxy headers are trusted."""
    if settings.TRUST_PROXY_HEADERS:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()
    return request.client.host if request.client else "unknown"


def log_security_event(
    request: Request,
    event_type: str,
    outcome: SecurityOutcome | str,
    reason_code: str | None = None,
    account_id: int | None = None,
    role: str | None = None,
    **extra_fields: Any,
) -> None:
    """
    Emit one structured security log line.

    Args:
        request: Incoming request (for ip, user agent and request id)
        event_type: e.g. "auth_login_failed", "attempt_denied"
        outcome: allow / deny / degraded
        reason_code: Error code behind a denial
        account_id: Account id, when known
        role: Role store the account belongs to
        **extra_fields: Event-specific fields (quiz_id, operation, ...)
    """
    outcome = SecurityOutcome(outcome)
    fields: dict[str, Any] = {
        "event": event_type,
        "outcome": outcome.value,
        "request_id": get_request_id(request),
        "ip_address": get_client_ip(request),
        "user_agent": request.headers.get("User-Agent"),
        "path": request.url.path,
    }
    optional = {"account_id": account_id, "role": role, "reason_code": reason_code}
    fields.update({k: v for k, v in optional.items() if v is not None})
    fields.update(extra_fields)

    if outcome is SecurityOutcome.ALLOW:
        logger.info(event_type, extra=fields)
    else:
        logger.warning(event_type, extra=fields)
