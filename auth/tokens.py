"""
auth/tokens.py -- Access token codec (JWT, HS256).

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the configured secret
       and carry user id (sub), role, type, issue time and expiry. The decode
       path passes algorithms=[HS256] explicitly, so "alg": "none" tokens and
       tokens signed with any other algorithm are rejected before the
       signature is even considered.

  Failure mode: verify() fails closed. Any decoding problem, bad signature,
       expiry or missing/mistyped claim raises InvalidToken. The gate turns
       that into a 401 without telling the caller which check failed.

  Statelessness: nothing is stored. Revoking a refresh session does not
       revoke access tokens already minted from it; the short access TTL
       bounds that window.

Layer rule: no imports from api/. The secret comes from AuthConfig, never
from module-level settings.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt
from jose.exceptions import JOSEError

from auth.config import ALGORITHM, AuthConfig
from auth.errors import InvalidToken, SigningFailure
from auth.models import AccessClaims

_TOKEN_TYPE = "access"


class TokenCodec:
    """Issue and verify signed access tokens for one AuthConfig."""

    def __init__(self, config: AuthConfig) -> None:
        self._secret = config.jwt_secret
        self._default_ttl = config.access_ttl

    def issue(self, user_id: str, role: str, ttl: timedelta | None = None) -> tuple[str, datetime]:
        """Encode a signed JWT and return (token, expires_at).

        Args:
            user_id: Stored as the JWT subject claim.
            role:    Role tag; may be "" (see AccessClaims).
            ttl:     Lifetime; defaults to the configured access TTL. A
                     non-positive ttl yields an already-expired token.

        expires_at is truncated to whole seconds so it equals the exp claim.
        """
        if not self._secret:
            raise SigningFailure("signing secret is not configured")
        now = datetime.now(timezone.utc).replace(microsecond=0)
        expires_at = now + (ttl if ttl is not None else self._default_ttl)
        payload = {
            "sub": user_id,
            "role": role,
            "type": _TOKEN_TYPE,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            # Unique per token: two tokens minted in the same second must differ.
            "jti": uuid.uuid4().hex,
        }
        try:
            token = jwt.encode(payload, self._secret, algorithm=ALGORITHM)
        except JOSEError as exc:
            raise SigningFailure("access token signing failed") from exc
        return token, expires_at

    def verify(self, token: str) -> AccessClaims:
        """Decode and verify a JWT. Raises InvalidToken on any failure."""
        if not token:
            raise InvalidToken()
        try:
            payload = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except JOSEError as exc:
            raise InvalidToken() from exc

        user_id = payload.get("sub")
        role = payload.get("role")
        issued_at = payload.get("iat")
        expires_at = payload.get("exp")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidToken()
        if not isinstance(role, str):
            raise InvalidToken()
        if payload.get("type") != _TOKEN_TYPE:
            raise InvalidToken()
        # bool is an int subclass; a JSON true is not a timestamp.
        for value in (issued_at, expires_at):
            if not isinstance(value, int) or isinstance(value, bool):
                raise InvalidToken()

        return AccessClaims(
            user_id=user_id,
            role=role,
            issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
            expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
        )
