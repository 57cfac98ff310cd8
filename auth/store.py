"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper. Gateway and route
code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Uniqueness:
  The email column carries a UNIQUE constraint and always holds the
  normalized (trimmed, lowercased) address. Two concurrent create() calls for
  the same email therefore cannot both commit -- the database rejects the
  second INSERT with IntegrityError, which create() turns into DuplicateEmail.
  A read-then-insert check in Python alone would race.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import QueuePool, StaticPool

from auth.errors import DuplicateEmail
from auth.models import User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),  # uuid4 hex
    Column("name", String(255), nullable=False),
    Column("email", String(320), nullable=False, unique=True),  # normalized
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


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


DEFAULT_LOCK_TIMEOUT = 5.0


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records, unique by normalized email.

    Usage:
        store = UserStore("sqlite:///users.db")
        user = store.create("Al", "Al@X.com", hasher.hash("secret123"))
        store.find_by_email("al@x.com")  # -> the same record
        store.close()
    """

    def __init__(self, db_url: str, timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
        connect_args: dict = {}
        engine_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            # Bounds how long a write waits on another writer's lock.
            connect_args["timeout"] = timeout
        if "mode=memory" in db_url:
            # Named shared-cache database: every pooled connection sees the same data.
            engine_args["poolclass"] = QueuePool
            engine_args["pool_timeout"] = timeout
        elif ":memory:" in db_url:
            # Private in-memory database: only a single connection can see it.
            engine_args["poolclass"] = StaticPool
        else:
            engine_args["pool_timeout"] = timeout
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, **engine_args)
        if db_url.startswith("sqlite") and ":memory:" not in db_url and "mode=memory" not in db_url:
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> User | None:
        """Look up a user by email (case-insensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == normalize_email(email))).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def create(self, name: str, email: str, password_hash: str, deadline: float | None = None) -> User:
        """Insert a new user and return the stored record.

        Raises DuplicateEmail if a record with the same normalized email
        already exists, including when a concurrent create won the race.

        If deadline (a time.monotonic() value) has passed once the INSERT has
        run, the transaction is rolled back and TimeoutError is raised. The
        caller then knows nothing was written and the create can be retried.
        """
        user = User(
            id=uuid.uuid4().hex,
            name=name.strip(),
            email=normalize_email(email),
            hashed_password=password_hash,
            created_at=_now_iso(),
        )
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=user.id,
                        name=user.name,
                        email=user.email,
                        hashed_password=user.hashed_password,
                        created_at=user.created_at,
                    )
                )
                if deadline is not None and time.monotonic() >= deadline:
                    conn.rollback()
                    raise TimeoutError(f"insert for {user.email} missed its deadline")
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateEmail() from exc
        return user

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )
