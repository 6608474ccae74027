"""
auth/repository.py -- Persistence contracts consumed by AuthService.

Two narrow capability interfaces, expressed as typing.Protocol so any object
with matching methods qualifies (structural typing, no base class to inherit).
auth/memory.py and auth/store.py each implement both.

Conventions shared by every implementation:
  - "Not found" is None, never an exception.
  - Any other failure raises auth.errors.StoreFailure with the driver error
    chained; a unique-key conflict raises ConstraintViolation.
  - revoke_session() is a conditional update: it only touches a row whose
    revoked_at is still NULL and reports whether it did.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from auth.models import RefreshSession, User


class UserRepository(Protocol):
    def create_user(self, user: User) -> None:
        """Persist a new user. ConstraintViolation if the email is taken."""

    def get_user_by_email(self, email: str) -> User | None:
        """Exact-match lookup; no case folding."""

    def get_user_by_id(self, user_id: str) -> User | None: ...


class SessionRepository(Protocol):
    def create_session(self, session: RefreshSession) -> None:
        """Persist a new refresh session. ConstraintViolation on a duplicate token."""

    def get_session_by_token(self, token: str) -> RefreshSession | None:
        """Return the session regardless of state; the caller judges validity."""

    def revoke_session(self, session_id: str, revoked_at: datetime) -> bool:
        """Set revoked_at if the session is still unrevoked.

        Returns True if this call revoked it, False if it was already revoked
        or does not exist.
        """
