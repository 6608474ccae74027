"""
API request and response models for the auth REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Wire names are camelCase (accessToken, userID) to match existing frontend
clients; Python attributes stay snake_case via Field(alias=...). FastAPI
serializes response models by alias.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import AccessClaims, TokenPair, User

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Deliberately loose: one @, no whitespace, a dot in the domain. Deliverability
# is not our concern; uniqueness is the store's.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# bcrypt only reads the first 72 bytes; newer releases refuse longer input.
# The limit is in UTF-8 bytes, not characters.
PASSWORD_MAX_LENGTH = 72


def password_fits_bcrypt(value: str) -> bool:
    return len(value.encode("utf-8")) <= PASSWORD_MAX_LENGTH


def _check_password_bytes(value: str) -> str:
    if not password_fits_bcrypt(value):
        raise ValueError(f"password must be at most {PASSWORD_MAX_LENGTH} bytes in UTF-8")
    return value


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignUpRequest(BaseModel):
    """Request body for POST /api/v1/auth/sign-up."""

    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=8, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("password")
    @classmethod
    def password_byte_length(cls, value: str) -> str:
        """max_length counts characters; "é" * 40 passes it at 80 bytes."""
        return _check_password_bytes(value)


class SignInRequest(BaseModel):
    """Request body for POST /api/v1/auth/sign-in.

    No min_length on password: a short password is just a wrong one, and a
    422 would tell the caller something a 401 does not.
    """

    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("password")
    @classmethod
    def password_byte_length(cls, value: str) -> str:
        return _check_password_bytes(value)


class RefreshTokenRequest(BaseModel):
    """Body fallback for /refresh and /sign-out when the cookie is absent.

    The token is optional so that a stray empty body ({}) does not shadow a
    valid refresh cookie; the route answers 401 when neither is present.
    """

    model_config = ConfigDict(populate_by_name=True)

    refresh_token: Optional[str] = Field(default=None, alias="refreshToken", min_length=1)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AuthResponse(BaseModel):
    """Returned by sign-up and sign-in."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: str = Field(alias="userID")
    email: str
    role: str
    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")

    @classmethod
    def from_domain(cls, user: User, tokens: TokenPair) -> "AuthResponse":
        return cls(
            user_id=user.id,
            email=user.email,
            role=user.role,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        )


class RefreshResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")


class MeResponse(BaseModel):
    """Identity as seen by the gate (from the token, not the database)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: str = Field(alias="userID")
    role: str
    issued_at: datetime = Field(alias="issuedAt")
    expires_at: datetime = Field(alias="expiresAt")

    @classmethod
    def from_claims(cls, claims: AccessClaims) -> "MeResponse":
        return cls(
            user_id=claims.user_id,
            role=claims.role,
            issued_at=claims.issued_at,
            expires_at=claims.expires_at,
        )


class UserResponse(BaseModel):
    """Public view of a user record. password_hash is never included."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: str = Field(alias="userID")
    email: str
    role: str
    is_active: bool = Field(alias="isActive")
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_domain(cls, user: User) -> "UserResponse":
        return cls(
            user_id=user.id,
            email=user.email,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at,
        )


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Uniform error envelope used by every exception handler."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
