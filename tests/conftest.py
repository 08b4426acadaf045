"""
tests/conftest.py -- Shared test fixtures for the college auth API.

This module provides:
  - RecordingMailer: stands in for MailDispatcher and keeps every message
  - otp_store / user_store: unit-test stores on private in-memory SQLite
  - api: ApiContext with a TestClient over the real app and the test stores wired in

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for
the API client because TestClient runs sync route handlers in a thread
pool. Plain :memory: DBs are per-connection and would present a blank schema
to each worker thread. Each api context gets a fresh uuid-named database.

The DEBUG env var must be set before any app module import so get_settings()
auto-generates the token secrets instead of raising ValueError.
"""

from __future__ import annotations

import os
import re
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

# CRITICAL: Set DEBUG before any auth/core import.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import AccountType, UserAccount
from auth.store import UserStore
from auth.tokens import hash_password
from otp.store import OtpStore

# ---------------------------------------------------------------------------
# Mail stand-in
# ---------------------------------------------------------------------------


@dataclass
class RecordingMailer:
    """Collects (to, subject, html) tuples instead of delivering them."""

    sent: list[tuple[str, str, str]] = field(default_factory=list)

    def send(self, to: str, subject: str, html: str) -> None:
        self.sent.append((to, subject, html))

    def last_code_for(self, email: str) -> str:
        """Pull the 6-digit code out of the newest mail sent to `email`."""
        for to, _subject, body in reversed(self.sent):
            if to == email:
                match = re.search(r">(\d{6})<", body)
                assert match, "verification mail does not contain a 6-digit code"
                return match.group(1)
        raise AssertionError(f"no mail sent to {email}")


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_account(user_store: UserStore, email: str, password: str, account_type=AccountType.STUDENT) -> UserAccount:
    """Insert an account directly, bypassing signup, and return it."""
    uid = user_store.create_user(
        UserAccount(
            email=email,
            first_name="Test",
            last_name="User",
            gender="Female",
            contact_number="9876543210",
            account_type=account_type,
            hashed_password=hash_password(password),
        )
    )
    return user_store.get_by_id(uid)


@pytest.fixture
def make_account():
    return _make_account


@pytest.fixture
def otp_store() -> Generator[OtpStore, None, None]:
    store = OtpStore("sqlite:///:memory:", ttl_seconds=300)
    yield store
    store.close()


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


def _patch_lifespan(user_store: UserStore, otp_store: OtpStore, mailer: RecordingMailer):
    """Return an async context manager that replaces the real lifespan.

    Wires the test stores and recording mailer into app.state so no SMTP
    connection or purge task is started.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.otp_store = otp_store
        app.state.mailer = mailer
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


@dataclass
class ApiContext:
    client: TestClient
    user_store: UserStore
    otp_store: OtpStore
    mailer: RecordingMailer


@pytest.fixture
def api(mailer: RecordingMailer) -> Generator[ApiContext, None, None]:
    """Yield an ApiContext around a TestClient backed by fresh test stores."""
    db_url = f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    user_store = UserStore(db_url)
    otp_store = OtpStore(db_url, ttl_seconds=300)

    original_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(user_store, otp_store, mailer)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiContext(client, user_store, otp_store, mailer)
    app.router.lifespan_context = original_lifespan

    otp_store.close()
    user_store.close()
