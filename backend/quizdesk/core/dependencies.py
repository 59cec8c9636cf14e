"""FastAPI dependencies for authentication and authorization."""

from typing import Annotated

import jwt
from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from quizdesk.core.app_exceptions import AppError, UnauthenticatedError
from quizdesk.core.security import decode_access_token
from quizdesk.core.security_logging import SecurityOutcome, log_security_event
from quizdesk.db.session import get_db
from quizdesk.services.access_policy import (
    Identity,
    Operation,
    Role,
    ensure_authorized,
    make_identity,
)
from quizdesk.services.accounts import get_account

ATTEMPT_TOKEN_HEADER = "X-Quiz-Token"


def get_current_identity(
    authorization: Annotated[str | None, Header()] = None,
    db: Session = Depends(get_db),
) -> Identity:
    """Decode the bearer token into a role-tagged identity."""
    if not authorization:
        raise UnauthenticatedError("Authorization header missing")

    try:
        scheme, token = authorization.split()
        if scheme.lower() != "bearer":
            raise ValueError("Invalid authorization scheme")
    except ValueError:
        raise UnauthenticatedError(
            "Invalid authorization header format. Expected: Bearer <token>"
        ) from None

    try:
        claims = decode_access_token(token)
        role = Role(claims.role)
    except (jwt.InvalidTokenError, ValueError) as e:
        raise UnauthenticatedError(f"Invalid or expired token: {e}") from e

    account_id = claims.account_id
    account = get_account(db, role, account_id)
    if account is None:
        raise UnauthenticatedError("Account not found")
    if not account.is_active:
        raise UnauthenticatedError("Account is inactive")

    return make_identity(role, account_id)


def require_operation(operation: Operation):
    """Dependency factory: authenticated identity allowed to perform ``operation``."""

    def operation_checker(
        request: Request,
        identity: Identity = Depends(get_current_identity),
    ) -> Identity:
        try:
            ensure_authorized(identity, operation)
        except AppError as e:
            log_security_event(
                request,
                event_type="access_denied",
                outcome=SecurityOutcome.DENY,
                reason_code=e.code,
                account_id=identity.id,
                role=identity.role.value,
                operation=operation.value,
            )
            raise
        return identity

    return operation_checker


def get_attempt_token(
    attempt_token: Annotated[str | None, Header(alias=ATTEMPT_TOKEN_HEADER)] = None,
) -> str | None:
    """Opaque attempt token issued by the start endpoint."""
    return attempt_token.strip() if attempt_token else None


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
AttemptToken = Annotated[str | None, Depends(get_attempt_token)]
