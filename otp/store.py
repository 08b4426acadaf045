"""
otp/store.py -- SQLAlchemy Core persistence for email verification codes.

Holds one OtpRecord per email with its creation timestamp. Issuing a code
deletes any previous record for the email and inserts a fresh one inside a
single transaction, so readers never see two live codes for one address.

Verification rules (consume_otp), checked in this order:
  1. no record for the email        -> OtpNotFound
  2. submitted code differs         -> InvalidOtp
  3. record already consumed        -> OtpAlreadyUsed
  4. now > created_at + ttl         -> OtpExpired

consume_otp() never deletes the record. The signup flow calls
mark_consumed() once the account exists, which makes every code single-use.

Usage:
    store = OtpStore()
    record = store.request_otp("a@b.com")
    store.consume_otp("a@b.com", record.code)
    store.purge_expired()          # called periodically by the app lifespan
    store.close()

Layer rule: no imports from api/, auth/, or mail/.
"""

from __future__ import annotations

import hmac
import logging
import secrets
import string
import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from datetime import datetime, timedelta, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, create_engine, event
from sqlalchemy.engine import Engine

from core.config import get_settings
from core.errors import InvalidOtp, OtpAlreadyUsed, OtpExpired, OtpNotFound
from otp.models import OtpRecord, OtpStatus

logger = logging.getLogger("collegeauth.otp")

OTP_LENGTH = 6

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_otps = Table(
    "otps",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("code", String(OTP_LENGTH), nullable=False),
    Column("created_at", String(32), nullable=False),  # ISO 8601, UTC
    Column("status", String(16), nullable=False, server_default=OtpStatus.PENDING.value),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def generate_otp(length: int = OTP_LENGTH) -> str:
    """Return a numeric code of exactly `length` digits (leading zeros allowed)."""
    return "".join(secrets.choice(string.digits) for _ in range(length))


# ---------------------------------------------------------------------------
# Keyed lock
# ---------------------------------------------------------------------------


class _KeyedLock:
    """One threading.Lock per key, dropped once no caller holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, list] = {}  # key -> [lock, refcount]

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OtpStore:
    """Repository for OtpRecord entities, one record per email."""

    def __init__(self, db_url: str | None = None, ttl_seconds: int | None = None) -> None:
        settings = get_settings()
        db_url = db_url or settings.database_url
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.otp_ttl_seconds
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)
        self._locks = _KeyedLock()

    def lock(self, email: str) -> AbstractContextManager[None]:
        """Serialize OTP issue/verify for one email within this process."""
        return self._locks.hold(email)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def request_otp(self, email: str) -> OtpRecord:
        """Replace any existing code for `email` with a fresh one and return it."""
        record = OtpRecord(email=email, code=generate_otp(), created_at=datetime.now(timezone.utc))
        with self.engine.connect() as conn:
            conn.execute(_otps.delete().where(_otps.c.email == email))
            result = conn.execute(
                _otps.insert().values(
                    email=record.email,
                    code=record.code,
                    created_at=record.created_at.isoformat(),
                    status=record.status.value,
                )
            )
            conn.commit()
            record.id = result.inserted_primary_key[0]
        return record

    def get(self, email: str) -> OtpRecord | None:
        """Return the current record for `email`, or None."""
        with self.engine.connect() as conn:
            row = conn.execute(_otps.select().where(_otps.c.email == email)).fetchone()
        return _row_to_otp(row) if row is not None else None

    def consume_otp(self, email: str, submitted_code: str, now: datetime | None = None) -> OtpRecord:
        """Verify `submitted_code` for `email` and return the matching record.

        Raises OtpNotFound, InvalidOtp, OtpAlreadyUsed or OtpExpired. The
        comparison is constant-time; `now` defaults to the current UTC time.
        """
        record = self.get(email)
        if record is None:
            raise OtpNotFound()
        if not hmac.compare_digest(record.code.encode(), str(submitted_code).encode()):
            raise InvalidOtp()
        if record.status is OtpStatus.CONSUMED:
            raise OtpAlreadyUsed()
        now = now or datetime.now(timezone.utc)
        if now > record.expires_at(self.ttl_seconds):
            raise OtpExpired()
        return record

    def mark_consumed(self, otp_id: int) -> bool:
        """Flag a record as used. Returns False if it no longer exists."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _otps.update().where(_otps.c.id == otp_id).values(status=OtpStatus.CONSUMED.value)
            )
            conn.commit()
        return result.rowcount > 0

    def purge_expired(self, now: datetime | None = None) -> int:
        """Delete every record older than the TTL. Returns number of rows removed."""
        now = now or datetime.now(timezone.utc)
        cutoff = (now - timedelta(seconds=self.ttl_seconds)).isoformat()
        with self.engine.connect() as conn:
            result = conn.execute(_otps.delete().where(_otps.c.created_at < cutoff))
            conn.commit()
        if result.rowcount:
            logger.info("Purged %d expired OTP records", result.rowcount)
        return result.rowcount

    def close(self) -> None:
        self.engine.dispose()


def _row_to_otp(row) -> OtpRecord:
    return OtpRecord(
        id=row.id,
        email=row.email,
        code=row.code,
        created_at=datetime.fromisoformat(row.created_at),
        status=OtpStatus(row.status),
    )
