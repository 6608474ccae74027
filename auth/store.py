"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper.
SQLAuthStore is the repository (implements both UserRepository and
SessionRepository from auth/repository.py); _row_to_user / _row_to_session
are the mappers. Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Refresh tokens are looked up through a UNIQUE index on the token column.

Errors:
  IntegrityError  -> ConstraintViolation (duplicate email or token)
  SQLAlchemyError -> StoreFailure
  The driver exception is chained so operator logs keep the detail.

Timestamps are stored as ISO 8601 UTC strings. They sort and compare
correctly as text, and round-trip through SQLite without losing tzinfo.

DB path: auth/wdpl_auth.db by default (DATABASE_URL overrides).

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import ConstraintViolation, StoreFailure
from auth.models import RefreshSession, User

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'wdpl_auth.db'}"
_DEFAULT_TIMEOUT_SECONDS = 5.0

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(30), nullable=False, server_default="user"),
    Column("is_active", Integer, nullable=False, server_default="1"),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_refresh_tokens = Table(
    "refresh_tokens",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(36), nullable=False),
    Column("token", String(128), nullable=False, unique=True),
    Column("expires_at", String(32), nullable=False),
    Column("revoked_at", String(32)),  # NULL = active
    Column("user_agent", Text),
    Column("ip", String(64)),
    Column("created_at", String(32), nullable=False),
)

Index("ix_refresh_tokens_user_id", _refresh_tokens.c.user_id)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except IntegrityError as exc:
        raise ConstraintViolation(f"{operation}: unique constraint violated") from exc
    except SQLAlchemyError as exc:
        raise StoreFailure(f"{operation} failed") from exc


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SQLAuthStore:
    """Repository for User and RefreshSession rows.

    Usage:
        store = SQLAuthStore("sqlite:///auth.db")
        store.create_user(User(id=..., email="a@x.com", password_hash=...))
        user = store.get_user_by_email("a@x.com")
        store.close()

    timeout bounds how long a single call may wait on the database (SQLite
    busy timeout, or connect_timeout for network drivers).
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL, timeout: float = _DEFAULT_TIMEOUT_SECONDS) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            connect_args["timeout"] = timeout
        else:
            connect_args["connect_timeout"] = max(1, int(timeout))
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        with _store_errors("schema setup"):
            _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> None:
        """Insert a new user.

        Raises ConstraintViolation if the email already exists. AuthService
        maps that to EmailExists, which closes the check-then-insert race in
        register().
        """
        with _store_errors("create_user"), self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user.id,
                    email=user.email,
                    password_hash=user.password_hash,
                    role=user.role,
                    is_active=1 if user.is_active else 0,
                    created_at=_iso(user.created_at),
                    updated_at=_iso(user.updated_at),
                )
            )
            conn.commit()

    def get_user_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with _store_errors("get_user_by_email"), self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_user_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with _store_errors("get_user_by_id"), self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def count_users(self) -> int:
        with _store_errors("count_users"), self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Refresh sessions
    # ------------------------------------------------------------------

    def create_session(self, session: RefreshSession) -> None:
        with _store_errors("create_session"), self.engine.connect() as conn:
            conn.execute(
                _refresh_tokens.insert().values(
                    id=session.id,
                    user_id=session.user_id,
                    token=session.token,
                    expires_at=_iso(session.expires_at),
                    revoked_at=_iso(session.revoked_at),
                    user_agent=session.user_agent,
                    ip=session.ip,
                    created_at=_iso(session.created_at),
                )
            )
            conn.commit()

    def get_session_by_token(self, token: str) -> RefreshSession | None:
        """Return the session row for a token value, revoked or not. O(1) via UNIQUE index."""
        with _store_errors("get_session_by_token"), self.engine.connect() as conn:
            row = conn.execute(_refresh_tokens.select().where(_refresh_tokens.c.token == token)).fetchone()
        return _row_to_session(row) if row is not None else None

    def revoke_session(self, session_id: str, revoked_at: datetime) -> bool:
        """Stamp revoked_at on an active session.

        The revoked_at IS NULL condition makes this a compare-and-set: the
        first revocation wins, later ones match no row and return False.
        """
        with _store_errors("revoke_session"), self.engine.connect() as conn:
            result = conn.execute(
                _refresh_tokens.update()
                .where((_refresh_tokens.c.id == session_id) & (_refresh_tokens.c.revoked_at.is_(None)))
                .values(revoked_at=_iso(revoked_at))
            )
            revoked = result.rowcount > 0
            conn.commit()
        return revoked

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        role=row.role,
        is_active=bool(row.is_active),
        created_at=_parse(row.created_at),
        updated_at=_parse(row.updated_at),
    )


def _row_to_session(row) -> RefreshSession:
    return RefreshSession(
        id=row.id,
        user_id=row.user_id,
        token=row.token,
        expires_at=_parse(row.expires_at),
        revoked_at=_parse(row.revoked_at),
        user_agent=row.user_agent,
        ip=row.ip,
        created_at=_parse(row.created_at),
    )
