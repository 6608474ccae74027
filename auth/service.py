"""
auth/service.py -- Registration, login, refresh and sign-out.

AuthService is the only place that decides whether a credential is good. It
talks to storage through the UserRepository / SessionRepository protocols,
so the same logic runs against MemoryAuthStore in tests and SQLAuthStore in
production.

Session lifecycle:
  active  --(now >= expires_at)-->  expired   (computed on read, never stored)
  active | expired  --(revoke)-->   revoked   (terminal, revoked_at set once)

Security decisions:
  [E1] Unknown email and wrong password raise the same InvalidCredentials,
       and both paths run bcrypt, so neither the error nor the response time
       reveals whether an account exists.
  [E2] Unknown, expired and revoked refresh tokens all raise
       InvalidCredentials for the same reason.
  [E3] UserInactive is only raised after the password has been verified,
       so it cannot be used to probe for accounts either.

Concurrency: store calls are not wrapped in one transaction. Two refreshes
with the same token both succeed under RefreshRotation.keep; under
RefreshRotation.revoke the conditional revoke picks exactly one winner.
The email check in register() races with concurrent registrations; the
store's unique constraint settles it and the loser gets EmailExists.

Store failures propagate unchanged (StoreFailure); there are no retries.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from collections.abc import Callable
from datetime import datetime

from auth.config import AuthConfig
from auth.errors import ConstraintViolation, EmailExists, InvalidCredentials, UserInactive
from auth.models import RefreshSession, TokenPair, User, utcnow
from auth.passwords import PasswordHasher
from auth.repository import SessionRepository, UserRepository
from auth.tokens import TokenCodec
from core.config import RefreshRotation

logger = logging.getLogger("wdpl.auth")

DEFAULT_ROLE = "user"


class AuthService:
    """Credential and session state machine.

    Holds no mutable state of its own: everything durable lives in the
    repositories, everything else is the frozen AuthConfig.

    clock: zero-argument callable returning an aware UTC datetime. Tests
           inject one to move sessions past their expiry.
    """

    def __init__(
        self,
        users: UserRepository,
        sessions: SessionRepository,
        hasher: PasswordHasher,
        codec: TokenCodec,
        config: AuthConfig,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.users = users
        self.sessions = sessions
        self.hasher = hasher
        self.codec = codec
        self.config = config
        self._now = clock or utcnow

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def register(self, email: str, password: str) -> tuple[User, TokenPair]:
        """Create a user with the default role and open a first session.

        The email is used exactly as given. Callers that want
        case-insensitive accounts normalize before calling.
        """
        if self.users.get_user_by_email(email) is not None:
            raise EmailExists()

        now = self._now()
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=self.hasher.hash(password),
            role=DEFAULT_ROLE,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        try:
            self.users.create_user(user)
        except ConstraintViolation as exc:
            # Lost the race against a concurrent registration.
            raise EmailExists() from exc

        tokens = self._issue_tokens(user.id, user.role)
        logger.info("User registered: user_id=%s", user.id)
        return user, tokens

    def login(
        self,
        email: str,
        password: str,
        user_agent: str | None = None,
        ip: str | None = None,
    ) -> tuple[User, TokenPair]:
        """Check email + password and open a new session. [E1] [E3]"""
        user = self.users.get_user_by_email(email)
        if user is None:
            self.hasher.verify_dummy(password)
            logger.warning("Login failed: unknown account")
            raise InvalidCredentials()
        if not self.hasher.verify(password, user.password_hash):
            logger.warning("Login failed: bad password for user_id=%s", user.id)
            raise InvalidCredentials()
        if not user.is_active:
            logger.warning("Login refused: user_id=%s is inactive", user.id)
            raise UserInactive()

        tokens = self._issue_tokens(user.id, user.role, user_agent, ip)
        logger.info("User logged in: user_id=%s", user.id)
        return user, tokens

    def refresh(self, refresh_token: str, user_agent: str | None = None, ip: str | None = None) -> TokenPair:
        """Trade a valid refresh token for a new token pair. [E2]

        The new access token's role is "" unless refresh_reload_user is set,
        in which case the user is re-read and must still exist and be active.
        Whether the consumed session survives is the refresh_rotation policy.
        """
        now = self._now()
        session = self.sessions.get_session_by_token(refresh_token) if refresh_token else None
        if session is None or not session.is_valid(now):
            logger.warning(
                "Refresh refused: %s",
                "unknown token" if session is None else f"session_id={session.id} is {session.state(now).value}",
            )
            raise InvalidCredentials()

        role = ""
        if self.config.refresh_reload_user:
            user = self.users.get_user_by_id(session.user_id)
            if user is None:
                raise InvalidCredentials()
            if not user.is_active:
                raise UserInactive()
            role = user.role

        if self.config.refresh_rotation is RefreshRotation.revoke:
            if not self.sessions.revoke_session(session.id, now):
                # Another request consumed this token between our read and now.
                logger.warning("Refresh refused: session_id=%s already consumed", session.id)
                raise InvalidCredentials()

        tokens = self._issue_tokens(session.user_id, role, user_agent, ip)
        logger.info("Session refreshed: user_id=%s from session_id=%s", session.user_id, session.id)
        return tokens

    def revoke_session(self, refresh_token: str) -> None:
        """Sign out by refresh token value. Unknown tokens are a no-op."""
        session = self.sessions.get_session_by_token(refresh_token) if refresh_token else None
        if session is None:
            return
        self.revoke_by_id(session.id)

    def revoke_by_id(self, session_id: str) -> None:
        """Revoke a session by its id. Already revoked or missing is a no-op."""
        if self.sessions.revoke_session(session_id, self._now()):
            logger.info("Session revoked: session_id=%s", session_id)

    # ------------------------------------------------------------------
    # Token issuance
    # ------------------------------------------------------------------

    def _issue_tokens(
        self,
        user_id: str,
        role: str,
        user_agent: str | None = None,
        ip: str | None = None,
    ) -> TokenPair:
        access_token, access_expires_at = self.codec.issue(user_id, role, self.config.access_ttl)

        now = self._now()
        session = RefreshSession(
            id=str(uuid.uuid4()),
            user_id=user_id,
            token=secrets.token_hex(32),
            expires_at=now + self.config.refresh_ttl,
            user_agent=user_agent or None,
            ip=ip or None,
            created_at=now,
        )
        self.sessions.create_session(session)

        return TokenPair(
            access_token=access_token,
            access_expires_at=access_expires_at,
            refresh_token=session.token,
            refresh_expires_at=session.expires_at,
        )
