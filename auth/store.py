"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Flow and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Only bcrypt hashes are written to hashed_password.

Layer rule: no imports from api/, otp/, or mail/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine

from auth.models import AccountType, UserAccount
from core.config import get_settings

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("first_name", String(100), nullable=False),
    Column("last_name", String(100), nullable=False),
    Column("hashed_password", Text, nullable=False),
    Column("gender", String(30), nullable=False),
    Column("contact_number", String(30), nullable=False),
    Column("account_type", String(20), nullable=False, server_default=AccountType.STUDENT.value),
    Column("avatar", Text),
    Column("refresh_token", Text),  # NULL while logged out
    Column("otp_id", Integer),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode. Set per-connection because SQLite PRAGMAs are not inherited."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for UserAccount entities.

    Usage:
        store = UserStore()
        uid = store.create_user(UserAccount(email="a@b.com", ..., hashed_password=hash_password("secret")))
        user = store.get_by_email("a@b.com")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        db_url = db_url or get_settings().database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def create_user(self, user: UserAccount) -> int:
        """Insert a new account and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        """
        now = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.insert().values(
                    email=user.email,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    hashed_password=user.hashed_password,
                    gender=user.gender,
                    contact_number=user.contact_number,
                    account_type=AccountType(user.account_type).value,
                    avatar=user.avatar,
                    refresh_token=user.refresh_token,
                    otp_id=user.otp_id,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_email(self, email: str) -> UserAccount | None:
        """Look up an account by exact email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> UserAccount | None:
        """Look up an account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_user(self, user_id: int, **fields) -> bool:
        """Update mutable fields on an existing account.

        Accepted fields: hashed_password, refresh_token.
        Returns True if a row was updated, False if user_id was not found.
        """
        fields["updated_at"] = _now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(_users.update().where(_users.c.id == user_id).values(**fields))
            conn.commit()
        return result.rowcount > 0

    def set_refresh_token(self, user_id: int, token: str | None) -> bool:
        """Store (or clear, with None) the refresh token for an account."""
        return self.update_user(user_id, refresh_token=token)

    def delete_user(self, user_id: int) -> bool:
        """Permanently delete an account. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_user(row) -> UserAccount:
    return UserAccount(
        id=row.id,
        email=row.email,
        first_name=row.first_name,
        last_name=row.last_name,
        hashed_password=row.hashed_password,
        gender=row.gender,
        contact_number=row.contact_number,
        account_type=AccountType(row.account_type),
        avatar=row.avatar,
        refresh_token=row.refresh_token,
        otp_id=row.otp_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
