"""Credentials: Argon2 password hashes, JWT access tokens, attempt tokens."""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from quizdesk.core.config import settings
from quizdesk.core.logging import get_logger

logger = get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"

_password_hasher = PasswordHasher()

# Verified against when an email is unknown, so both paths cost one hash
DUMMY_PASSWORD_HASH = _password_hasher.hash("quizdesk-dummy-password")


@dataclass(frozen=True)
class AccessClaims:
    account_id: int
    role: str
    token_id: str
    expires_at: datetime


def hash_password(plain_password: str) -> str:
    return _password_hasher.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return _password_hasher.verify(password_hash, plain_password)
    except VerificationError:
        return False
    except InvalidHashError:
        logger.warning("password_hash_invalid")
        return False


def password_needs_rehash(password_hash: str) -> bool:
    """True when the hash was made with older Argon2 parameters."""
    return _password_hasher.check_needs_rehash(password_hash)


def _jwt_secret() -> str:
    if not settings.JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set")
    return settings.JWT_SECRET


def create_access_token(account_id: int, role: str) -> str:
    """Bearer token for an account in the ``role`` store."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(account_id),
        "role": role,
        "type": ACCESS_TOKEN_TYPE,
        "jti": uuid4().hex,
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, _jwt_secret(), algorithm=settings.JWT_ALG)


def decode_access_token(token: str) -> AccessClaims:
    """
    Verify signature, expiry and token type.

    Raises:
        jwt.InvalidTokenError: Any problem with the token
    """
    payload = jwt.decode(
        token,
        _jwt_secret(),
        algorithms=[settings.JWT_ALG],
        options={"require": ["sub", "role", "exp", "type"]},
    )
    if payload["type"] != ACCESS_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Not an access token")
    try:
        account_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise jwt.InvalidTokenError("Malformed subject") from None
    return AccessClaims(
        account_id=account_id,
        role=payload["role"],
        token_id=payload.get("jti", ""),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def generate_attempt_token() -> str:
    """Opaque, url-safe attempt token."""
    return secrets.token_urlsafe(settings.ATTEMPT_TOKEN_BYTES)
