"""
auth/store.py -- SQLAlchemy Core persistence layer for user credential records.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Service and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Concurrency:
  Protocol writes touch only the columns they own: set_verify_otp() and
  set_reset_otp() write one OTP pair, so a request holding an older copy of
  the record cannot restore a consumed code or a replaced password hash.
  save() is the whole-record write for callers that own the record.
  OTP consumption is NOT done with read-then-write: consume_verify_otp() /
  consume_reset_otp() issue one conditional UPDATE whose WHERE clause
  re-checks the code and expiry. The database applies it atomically, so of
  two requests racing with the same code exactly one sees rowcount == 1.

Layer rule: no imports from api/ or client/.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.errors import DuplicateEmailError
from auth.models import User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("is_verified", Integer, nullable=False, server_default="0"),
    Column("verify_otp", String(6), nullable=False, server_default=""),
    Column("verify_otp_expire_at", Integer, nullable=False, server_default="0"),
    Column("reset_otp", String(6), nullable=False, server_default=""),
    Column("reset_otp_expire_at", Integer, nullable=False, server_default="0"),
    Column("created_at", String(32), nullable=False),
)

# Columns written by create_user() and save(). id and created_at are set by the store.
_RECORD_COLUMNS = (
    "name",
    "email",
    "hashed_password",
    "is_verified",
    "verify_otp",
    "verify_otp_expire_at",
    "reset_otp",
    "reset_otp_expire_at",
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers are not blocked during writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User credential records.

    Usage:
        store = UserStore(settings.database_url)
        user_id = store.create_user(User(name="Ada", email="ada@example.com", hashed_password=digest))
        user = store.get_by_email("ada@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises DuplicateEmailError if the email already exists. The UNIQUE
        constraint is the source of truth, so two concurrent registrations
        for one email cannot both succeed.
        """
        values = _user_to_values(user)
        values["created_at"] = _now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_users.insert().values(**values))
                conn.commit()
        except IntegrityError as exc:
            raise DuplicateEmailError(user.email) from exc
        return result.inserted_primary_key[0]

    def save(self, user: User) -> None:
        """Persist the full current state of a previously fetched record.

        A whole-record write: it overwrites the password hash and both OTP
        pairs from `user`. The auth protocol never calls it; OTP issuance and
        consumption use the column-scoped methods below so an older copy of
        the record cannot undo a concurrent consume. is_verified is only ever
        written as 1.

        Raises ValueError for a User without an id (never inserted) and
        LookupError if the row no longer exists.
        """
        if user.id is None:
            raise ValueError("save() requires a persisted user (id is None)")
        values = _user_to_values(user)
        if not user.is_verified:
            del values["is_verified"]
        self._update_columns(user.id, **values)

    def set_verify_otp(self, user_id: int, otp: str, expire_at: int) -> None:
        """Store a fresh verification OTP, replacing any previous one.

        Writes only the verification pair, so a request that read the record
        earlier cannot put back a consumed reset code or an old password hash.
        Raises LookupError if the user no longer exists.
        """
        self._update_columns(user_id, verify_otp=otp, verify_otp_expire_at=expire_at)

    def set_reset_otp(self, user_id: int, otp: str, expire_at: int) -> None:
        """Store a fresh password-reset OTP, replacing any previous one.

        Same column-scoped write as set_verify_otp().
        """
        self._update_columns(user_id, reset_otp=otp, reset_otp_expire_at=expire_at)

    def _update_columns(self, user_id: int, **values) -> None:
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**values))
            conn.commit()
        if result.rowcount == 0:
            raise LookupError(f"user {user_id} does not exist")

    # ------------------------------------------------------------------
    # Atomic OTP consumption
    # ------------------------------------------------------------------

    def consume_verify_otp(self, user_id: int, otp: str, now: int) -> bool:
        """Mark the account verified and clear the verification OTP, if still valid.

        Compare-and-clear: the UPDATE only matches while the stored code equals
        `otp`, is non-empty, and has not expired at `now`. Returns True for the
        single caller that consumed the code.
        """
        stmt = (
            _users.update()
            .where(
                (_users.c.id == user_id)
                & (_users.c.verify_otp == otp)
                & (_users.c.verify_otp != "")
                & (_users.c.verify_otp_expire_at >= now)
            )
            .values(is_verified=1, verify_otp="", verify_otp_expire_at=0)
        )
        with self.engine.connect() as conn:
            result = conn.execute(stmt)
            conn.commit()
        return result.rowcount == 1

    def consume_reset_otp(self, email: str, otp: str, hashed_password: str, now: int) -> bool:
        """Replace the password hash and clear the reset OTP, if still valid.

        Same compare-and-clear contract as consume_verify_otp().
        """
        stmt = (
            _users.update()
            .where(
                (_users.c.email == email)
                & (_users.c.reset_otp == otp)
                & (_users.c.reset_otp != "")
                & (_users.c.reset_otp_expire_at >= now)
            )
            .values(hashed_password=hashed_password, reset_otp="", reset_otp_expire_at=0)
        )
        with self.engine.connect() as conn:
            result = conn.execute(stmt)
            conn.commit()
        return result.rowcount == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _user_to_values(user: User) -> dict:
    data = asdict(user)
    values = {col: data[col] for col in _RECORD_COLUMNS}
    values["is_verified"] = 1 if user.is_verified else 0
    return values


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        hashed_password=row.hashed_password,
        is_verified=bool(row.is_verified),
        verify_otp=row.verify_otp or "",
        verify_otp_expire_at=row.verify_otp_expire_at or 0,
        reset_otp=row.reset_otp or "",
        reset_otp_expire_at=row.reset_otp_expire_at or 0,
        created_at=row.created_at,
    )
