"""
api/routes/v1/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/v1/auth/sign-up          -- register; returns tokens, sets refresh cookie
  POST /api/v1/auth/sign-in          -- password login; returns tokens, sets refresh cookie
  POST /api/v1/auth/refresh          -- refresh token (cookie or body) -> new pair
  POST /api/v1/auth/sign-out         -- revoke refresh token (cookie or body); 204
  GET  /api/v1/auth/me               -- claims of the current access token (requires auth)
  GET  /api/v1/auth/users/{user_id}  -- user record (admin only)

Security:
  [E1] sign-in answers 401 invalid_credentials for unknown email and wrong
       password alike; AuthService makes both paths equally slow.
  [M5] Cache-Control: no-store on every response that carries a token.
  The refresh cookie is httpOnly so browser JS never sees the token. The body
  fallback exists for non-browser clients.

Handlers are plain `def`: AuthService is blocking (bcrypt, DB I/O), so
FastAPI runs them in its thread pool. Errors are auth.errors exceptions;
api/main.py turns them into the JSON error envelope.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response

from api.models import (
    AuthResponse,
    MeResponse,
    RefreshResponse,
    RefreshTokenRequest,
    SignInRequest,
    SignUpRequest,
    UserResponse,
)
from auth.dependencies import get_auth_service, require_auth, require_role
from auth.errors import InvalidCredentials
from auth.models import AccessClaims
from auth.service import AuthService

# Auth policy:
# - POST /api/v1/auth/sign-up:          public
# - POST /api/v1/auth/sign-in:          public
# - POST /api/v1/auth/refresh:          public -- the refresh token is the credential
# - POST /api/v1/auth/sign-out:         public -- the refresh token is the credential
# - GET  /api/v1/auth/me:               requires auth (require_auth)
# - GET  /api/v1/auth/users/{user_id}:  requires admin (require_auth + require_role)
router = APIRouter()

REFRESH_COOKIE_NAME = "refreshToken"


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/sign-up", response_model=AuthResponse, status_code=201)
def sign_up(
    request: Request,
    body: SignUpRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Create an account with role "user" and log it in."""
    user, tokens = service.register(body.email, body.password)
    _set_refresh_cookie(request, response, tokens.refresh_token, tokens.refresh_expires_at)
    response.headers["Cache-Control"] = "no-store"  # [M5]
    return AuthResponse.from_domain(user, tokens)


@router.post("/auth/sign-in", response_model=AuthResponse)
def sign_in(
    request: Request,
    body: SignInRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Authenticate with email and password. [E1]"""
    user, tokens = service.login(
        body.email,
        body.password,
        user_agent=request.headers.get("User-Agent"),
        ip=_client_ip(request),
    )
    _set_refresh_cookie(request, response, tokens.refresh_token, tokens.refresh_expires_at)
    response.headers["Cache-Control"] = "no-store"  # [M5]
    return AuthResponse.from_domain(user, tokens)


@router.post("/auth/refresh", response_model=RefreshResponse)
def refresh(
    request: Request,
    response: Response,
    body: RefreshTokenRequest | None = Body(default=None),
    service: AuthService = Depends(get_auth_service),
) -> RefreshResponse:
    """Exchange a refresh token for a new access + refresh pair.

    A 200 here doubles as the frontend's "am I still logged in" probe.
    """
    token = _refresh_token_from(request, body)
    if token is None:
        raise InvalidCredentials("Refresh token required.")
    tokens = service.refresh(
        token,
        user_agent=request.headers.get("User-Agent"),
        ip=_client_ip(request),
    )
    _set_refresh_cookie(request, response, tokens.refresh_token, tokens.refresh_expires_at)
    response.headers["Cache-Control"] = "no-store"  # [M5]
    return RefreshResponse(access_token=tokens.access_token, refresh_token=tokens.refresh_token)


@router.post("/auth/sign-out", status_code=204)
def sign_out(
    request: Request,
    body: RefreshTokenRequest | None = Body(default=None),
    service: AuthService = Depends(get_auth_service),
) -> Response:
    """Revoke the refresh session and clear the cookie.

    Idempotent: an unknown or already revoked token still gets a 204. Access
    tokens minted from the session stay valid until they expire.
    """
    token = _refresh_token_from(request, body)
    if token is not None:
        service.revoke_session(token)
    response = Response(status_code=204)
    _clear_refresh_cookie(request, response)
    return response


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
def me(claims: AccessClaims = Depends(require_auth)) -> MeResponse:
    """Return the identity carried by the caller's access token."""
    return MeResponse.from_claims(claims)


@router.get(
    "/auth/users/{user_id}",
    response_model=UserResponse,
    dependencies=[Depends(require_auth), Depends(require_role("admin"))],
)
def get_user(user_id: str, service: AuthService = Depends(get_auth_service)) -> UserResponse:
    """Look up a user record by id. Admin only."""
    user = service.users.get_user_by_id(user_id)
    if user is None:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found", "message": "User not found."},
        )
    return UserResponse.from_domain(user)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _refresh_token_from(request: Request, body: RefreshTokenRequest | None) -> str | None:
    """Cookie first (browser clients), then JSON body (everyone else)."""
    token = request.cookies.get(REFRESH_COOKIE_NAME)
    if token:
        return token
    if body is not None:
        return body.refresh_token
    return None


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def _set_refresh_cookie(request: Request, response: Response, token: str, expires_at: datetime) -> None:
    """Write the refresh token as an httpOnly cookie that expires with the session.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation.
    secure: only sent over HTTPS when SECURE_COOKIES=true (the default).
    """
    response.set_cookie(
        REFRESH_COOKIE_NAME,
        value=token,
        path="/",
        expires=expires_at,
        httponly=True,
        samesite="lax",
        secure=request.app.state.secure_cookies,
    )


def _clear_refresh_cookie(request: Request, response: Response) -> None:
    response.delete_cookie(
        REFRESH_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=request.app.state.secure_cookies,
    )
