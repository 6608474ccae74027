"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data containers). Stores and the service do the
work; the only logic here is the read-time session state classification,
which every store and the service must agree on.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    """An identity that can log in.

    password_hash is the bcrypt string, never the plaintext. It must not be
    copied into any response model.
    """

    id: str
    email: str
    password_hash: str
    role: str = "user"
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


class SessionState(str, Enum):
    active = "active"
    expired = "expired"  # derived at read time, never stored
    revoked = "revoked"  # terminal


@dataclass
class RefreshSession:
    """A long-lived login session, identified to the client by `token`.

    id and token are distinct on purpose: id is safe to log and to use for
    internal revocation, token is the bearer secret.

    revoked_at is None while the session is usable and is written exactly
    once. Rows are never deleted (audit trail).
    """

    id: str
    user_id: str
    token: str
    expires_at: datetime
    revoked_at: datetime | None = None
    user_agent: str | None = None
    ip: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    def state(self, now: datetime) -> SessionState:
        if self.revoked_at is not None:
            return SessionState.revoked
        if now >= self.expires_at:
            return SessionState.expired
        return SessionState.active

    def is_valid(self, now: datetime) -> bool:
        return self.state(now) is SessionState.active


@dataclass(frozen=True)
class AccessClaims:
    """Identity payload recovered from a verified access token.

    role is "" for tokens minted by refresh() unless the service is configured
    to reload the user.
    """

    user_id: str
    role: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    access_expires_at: datetime
    refresh_token: str
    refresh_expires_at: datetime
