"""Unit tests for auth/store.py -- account persistence.

Covers:
- create_user() rejects a second account for the same email
- update_user() changes the password hash and refresh token and bumps updated_at
- update_user() / set_refresh_token() report a missing account as False
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from auth.models import UserAccount
from auth.tokens import verify_password


class TestUserStore:
    def test_duplicate_email_rejected(self, user_store, make_account) -> None:
        make_account(user_store, "ann@college.in", "pass-1234")
        with pytest.raises(IntegrityError):
            user_store.create_user(
                UserAccount(
                    email="ann@college.in",
                    first_name="Ann",
                    last_name="Lee",
                    gender="Female",
                    contact_number="9876543210",
                    hashed_password="x",
                )
            )

    def test_update_password_and_refresh_token(self, user_store, make_account) -> None:
        account = make_account(user_store, "ann@college.in", "pass-1234")
        replacement = make_account(user_store, "tmp@college.in", "new-pass-99").hashed_password

        assert user_store.update_user(account.id, hashed_password=replacement, refresh_token="r-token")
        stored = user_store.get_by_id(account.id)
        assert verify_password("new-pass-99", stored.hashed_password)
        assert stored.refresh_token == "r-token"
        assert stored.updated_at >= account.updated_at
        # Untouched columns keep their values
        assert stored.account_type is account.account_type
        assert stored.avatar == account.avatar

    def test_missing_account(self, user_store) -> None:
        assert user_store.update_user(999, refresh_token=None) is False
        assert user_store.set_refresh_token(999, "r-token") is False
