"""
auth/config.py -- Immutable configuration for the auth layer.

AuthConfig is built once at startup (from core.config.Settings in production,
directly in tests) and handed to every constructor that needs the signing
secret or a TTL. Nothing in auth/ reads process-wide settings on its own, so
two services with different secrets can run side by side in one process.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from core.config import RefreshRotation, Settings

ALGORITHM = "HS256"


@dataclass(frozen=True)
class AuthConfig:
    """Signing secret, token lifetimes and session policy.

    refresh_rotation:    see core.config.RefreshRotation.
    refresh_reload_user: when True, refresh() re-reads the user so the new
                         access token carries the current role and inactive
                         users cannot refresh. When False the role claim of a
                         refreshed token is empty.
    """

    jwt_secret: str
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(minutes=30)
    refresh_rotation: RefreshRotation = RefreshRotation.keep
    refresh_reload_user: bool = False
    bcrypt_rounds: int = 12

    def __repr__(self) -> str:
        # Keep the secret out of logs and tracebacks.
        return (
            f"AuthConfig(jwt_secret='***', access_ttl={self.access_ttl!r}, "
            f"refresh_ttl={self.refresh_ttl!r}, refresh_rotation={self.refresh_rotation.value!r}, "
            f"refresh_reload_user={self.refresh_reload_user!r}, bcrypt_rounds={self.bcrypt_rounds!r})"
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> AuthConfig:
        return cls(
            jwt_secret=settings.jwt_secret,
            access_ttl=timedelta(minutes=settings.access_token_ttl),
            refresh_ttl=timedelta(minutes=settings.refresh_token_ttl),
            refresh_rotation=settings.refresh_rotation,
            refresh_reload_user=settings.refresh_reload_user,
            bcrypt_rounds=settings.bcrypt_rounds,
        )
