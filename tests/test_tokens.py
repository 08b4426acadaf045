"""Unit tests for auth/tokens.py -- bcrypt hashing and JWT access/refresh tokens.

Covers:
- hash_password() never returns the plaintext; verify_password() round trip
- access tokens carry the account id as "sub" and verify with the access secret only
- refresh tokens verify with the refresh secret only
- expired and tampered tokens decode to None
- cookie helpers use one flag set for setting and clearing
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from fastapi.responses import JSONResponse
from jose import jwt

from auth.models import AccountType, UserAccount
from auth.tokens import (
    clear_auth_cookies,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    issue_token_pair,
    set_auth_cookies,
    verify_password,
)
from core.config import get_settings


def _account(uid: int = 7) -> UserAccount:
    return UserAccount(
        id=uid,
        email="ann@college.in",
        first_name="Ann",
        last_name="Lee",
        gender="Female",
        contact_number="9876543210",
        account_type=AccountType.TEACHER,
    )


class TestPasswords:
    def test_hash_is_not_plaintext(self) -> None:
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert hashed.startswith("$2")

    def test_verify_round_trip(self) -> None:
        hashed = hash_password("s3cret-pass")
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("other-pass", hashed)

    def test_verify_against_garbage_hash(self) -> None:
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestAccessTokens:
    def test_subject_is_account_id(self) -> None:
        payload = decode_access_token(create_access_token(_account(42)))
        assert payload is not None
        assert payload["sub"] == "42"
        assert payload["account_type"] == "Teacher"

    def test_refresh_token_is_not_an_access_token(self) -> None:
        assert decode_access_token(create_refresh_token(_account())) is None

    def test_expired_token_rejected(self) -> None:
        settings = get_settings()
        expired = jwt.encode(
            {"sub": "7", "exp": datetime.now(timezone.utc) - timedelta(seconds=1)},
            settings.access_token_secret,
            algorithm="HS256",
        )
        assert decode_access_token(expired) is None

    def test_tampered_token_rejected(self) -> None:
        token = create_access_token(_account())
        header, payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
        tampered = ".".join([header, payload, flipped])
        assert decode_access_token(tampered) is None

    def test_foreign_secret_rejected(self) -> None:
        forged = jwt.encode(
            {"sub": "7", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            "x" * 64,
            algorithm="HS256",
        )
        assert decode_access_token(forged) is None

    def test_non_numeric_subject_rejected(self) -> None:
        settings = get_settings()
        token = jwt.encode(
            {"sub": "admin", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
            settings.access_token_secret,
            algorithm="HS256",
        )
        assert decode_access_token(token) is None

    def test_malformed_token_rejected(self) -> None:
        assert decode_access_token("not.a.jwt") is None


class TestRefreshTokens:
    def test_pair_uses_distinct_secrets(self) -> None:
        pair = issue_token_pair(_account(9))
        assert decode_refresh_token(pair.refresh_token)["sub"] == "9"
        assert decode_refresh_token(pair.access_token) is None
        assert pair.access_token != pair.refresh_token


class TestCookies:
    def test_set_and_clear_use_same_flags(self) -> None:
        pair = issue_token_pair(_account())
        resp = JSONResponse(content={})
        set_auth_cookies(resp, pair)
        set_headers = [v for k, v in resp.raw_headers if k == b"set-cookie"]
        assert len(set_headers) == 2

        cleared = JSONResponse(content={})
        clear_auth_cookies(cleared)
        clear_headers = [v for k, v in cleared.raw_headers if k == b"set-cookie"]
        assert len(clear_headers) == 2

        for header in set_headers + clear_headers:
            text = header.decode().lower()
            assert "httponly" in text
            assert "samesite=strict" in text
            assert "secure" in text
            assert "path=/" in text
