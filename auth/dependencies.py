"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

require_auth() reads the Authorization: Bearer <token> header, verifies it
with the TokenCodec on app.state and leaves the AccessClaims on
request.state under CLAIMS_STATE_KEY for downstream handlers.

require_role(*roles) builds a dependency that reads those claims and checks
the role. It does not authenticate on its own: list it after require_auth.
If it runs first it sees no claims and answers 401.

    @router.get("/admin", dependencies=[Depends(require_auth), Depends(require_role("admin"))])

Both raise auth.errors exceptions; api/main.py renders them.

Layer rule: auth/dependencies.py may import from fastapi (for Request)
because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request

from auth.gate import authenticate, authorize, parse_bearer
from auth.models import AccessClaims
from auth.service import AuthService
from auth.tokens import TokenCodec

CLAIMS_STATE_KEY = "claims"


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def require_auth(request: Request) -> AccessClaims:
    """Require a valid bearer access token. Raises Unauthorized (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(claims: AccessClaims = Depends(require_auth)): ...
    """
    credential = parse_bearer(request.headers.get("Authorization"))
    claims = authenticate(get_token_codec(request), credential)
    setattr(request.state, CLAIMS_STATE_KEY, claims)
    return claims


def require_role(*roles: str) -> Callable[[Request], AccessClaims]:
    """Return a dependency that admits only the given roles.

    Raises Unauthorized (401) if require_auth has not populated the claims,
    Forbidden (403) if the role is not in the allow-set.
    """
    allowed = frozenset(roles)

    def _check_role(request: Request) -> AccessClaims:
        return authorize(getattr(request.state, CLAIMS_STATE_KEY, None), allowed)

    return _check_role
