"""Authentication schemas."""

from typing import Literal

from pydantic import BaseModel, EmailStr, field_validator


class LoginRequest(BaseModel):
    """Login request schema (same shape for every role store)."""

    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower().strip()


class TokenResponse(BaseModel):
    """Bearer token issued by a login endpoint."""

    access_token: str
    token_type: Literal["bearer"] = "bearer"
    role: str
    account_id: int
    name: str


class CheckAuthResponse(BaseModel):
    """Identity behind the presented bearer token."""

    authenticated: bool = True
    role: str
    account_id: int
    name: str
    email: str
