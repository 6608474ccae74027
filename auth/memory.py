"""
auth/memory.py -- In-process implementation of the auth repositories.

Backs the unit tests and USE_MEMORY_STORE=true dev runs. Behaves like the SQL
store on every point the service relies on: unique email and token, None for
missing rows, conditional revocation. Stored objects are copied on the way in
and out so callers cannot mutate a row behind the store's back.

A single lock guards all dicts; FastAPI runs sync handlers in a thread pool.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime

from auth.errors import ConstraintViolation
from auth.models import RefreshSession, User


class MemoryAuthStore:
    """Dict-backed UserRepository + SessionRepository."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._users: dict[str, User] = {}
        self._user_ids_by_email: dict[str, str] = {}
        self._sessions: dict[str, RefreshSession] = {}
        self._session_ids_by_token: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> None:
        with self._lock:
            if user.email in self._user_ids_by_email or user.id in self._users:
                raise ConstraintViolation("user already exists")
            self._users[user.id] = replace(user)
            self._user_ids_by_email[user.email] = user.id

    def get_user_by_email(self, email: str) -> User | None:
        with self._lock:
            user_id = self._user_ids_by_email.get(email)
            return replace(self._users[user_id]) if user_id is not None else None

    def get_user_by_id(self, user_id: str) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            return replace(user) if user is not None else None

    def count_users(self) -> int:
        with self._lock:
            return len(self._users)

    # ------------------------------------------------------------------
    # Refresh sessions
    # ------------------------------------------------------------------

    def create_session(self, session: RefreshSession) -> None:
        with self._lock:
            if session.token in self._session_ids_by_token or session.id in self._sessions:
                raise ConstraintViolation("refresh session already exists")
            self._sessions[session.id] = replace(session)
            self._session_ids_by_token[session.token] = session.id

    def get_session_by_token(self, token: str) -> RefreshSession | None:
        with self._lock:
            session_id = self._session_ids_by_token.get(token)
            return replace(self._sessions[session_id]) if session_id is not None else None

    def revoke_session(self, session_id: str, revoked_at: datetime) -> bool:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.revoked_at is not None:
                return False
            session.revoked_at = revoked_at
            return True

    def close(self) -> None:
        pass
