"""
auth/gate.py -- Transport-independent authorization gate.

Two checks, always in this order:
  1. authenticate(): bearer credential -> AccessClaims, or Unauthorized.
  2. authorize():    AccessClaims + allowed roles -> AccessClaims, or Forbidden.

authorize() fails closed: if step 1 did not run (claims missing or of the
wrong type) the answer is Unauthorized, not Forbidden.

auth/dependencies.py adapts these to FastAPI. Anything else that needs a
verified identity (CLI tools, websocket handshakes) calls them directly.
"""

from __future__ import annotations

from collections.abc import Iterable

from auth.errors import Forbidden, InvalidToken, Unauthorized
from auth.models import AccessClaims
from auth.tokens import TokenCodec

_BEARER = "bearer"


def parse_bearer(header: str | None) -> str | None:
    """Return the credential from an 'Authorization: Bearer <token>' value.

    The scheme is matched case-insensitively (RFC 7235). Any other scheme, or
    an empty credential, gives None.
    """
    if not header:
        return None
    scheme, _, credential = header.strip().partition(" ")
    if scheme.lower() != _BEARER:
        return None
    return credential.strip() or None


def authenticate(codec: TokenCodec, credential: str | None) -> AccessClaims:
    if not credential:
        raise Unauthorized()
    try:
        return codec.verify(credential)
    except InvalidToken as exc:
        raise Unauthorized("Invalid or expired token.") from exc


def authorize(claims: object, allowed_roles: Iterable[str]) -> AccessClaims:
    if not isinstance(claims, AccessClaims):
        raise Unauthorized()
    if claims.role not in set(allowed_roles):
        raise Forbidden()
    return claims
