"""
auth/errors.py -- Exception taxonomy for the auth layer.

Every error carries the HTTP status and stable error code the API boundary
renders for it, so api/main.py needs a single exception handler.

Two families:
  Domain errors (internal=False): expected outcomes the caller is told about
      -- bad credentials, inactive user, duplicate email, gate rejections.
  Internal errors (internal=True): hashing, signing and store failures. The
      boundary logs them and answers with a generic 500; their message never
      reaches the client.

InvalidCredentials deliberately covers unknown email, wrong password, and
unknown / expired / revoked refresh tokens. Do not split it: one error for
all of them is what stops account and token enumeration.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for auth errors mapped to HTTP responses."""

    status_code: int = 400
    error_code: str = "bad_request"
    default_message: str = "Request failed."
    internal: bool = False

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------


class InvalidCredentials(AuthError):
    status_code = 401
    error_code = "invalid_credentials"
    default_message = "Invalid credentials."


class UserInactive(AuthError):
    status_code = 403
    error_code = "user_inactive"
    default_message = "User is inactive."


class EmailExists(AuthError):
    status_code = 409
    error_code = "email_exists"
    default_message = "A user with this email already exists."


class InvalidToken(AuthError):
    """Access token failed verification (codec level)."""

    status_code = 401
    error_code = "invalid_token"
    default_message = "Invalid token."


class Unauthorized(AuthError):
    """Gate rejection: no credential, or the credential did not verify."""

    status_code = 401
    error_code = "unauthorized"
    default_message = "Authentication required."


class Forbidden(AuthError):
    """Gate rejection: authenticated, but the role is not allowed."""

    status_code = 403
    error_code = "forbidden"
    default_message = "Insufficient permissions."


# ---------------------------------------------------------------------------
# Internal errors
# ---------------------------------------------------------------------------


class InternalAuthError(AuthError):
    status_code = 500
    error_code = "internal_error"
    default_message = "An unexpected error occurred."
    internal = True


class HashingFailure(InternalAuthError):
    pass


class SigningFailure(InternalAuthError):
    pass


class StoreFailure(InternalAuthError):
    """Any persistence failure. The original exception is chained as __cause__."""


class ConstraintViolation(StoreFailure):
    """A unique constraint rejected a write (e.g. duplicate email)."""
