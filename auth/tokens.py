"""
auth/tokens.py -- Password hashing, JWT access/refresh tokens, and cookie helpers.

Security design decisions:
  JWT: python-jose with HS256. Two independent secrets:
       ACCESS_TOKEN_SECRET signs short-lived access tokens that authenticate
       requests; REFRESH_TOKEN_SECRET signs longer-lived refresh tokens that are
       also stored on the account. Because the secrets differ, a refresh token
       never verifies as an access token. Both carry the account id as the
       "sub" claim. Verification returns None on any failure -- the auth
       dependency turns that into a 401.

  Passwords: bcrypt, used directly. Its cost factor makes brute-force of
       low-entropy secrets expensive. bcrypt only looks at the first 72 bytes,
       so the flows reject longer passwords before they get here.

  Cookies: both tokens travel as httpOnly, SameSite=Strict cookies. The same
       flag set is used to set and to clear them, otherwise some browsers keep
       the old cookie around.

Layer rule: no imports from api/, otp/, or mail/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

import bcrypt
from jose import JWTError, jwt

from auth.models import UserAccount
from core.config import get_settings

logger = logging.getLogger("collegeauth.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

MAX_PASSWORD_BYTES = 72


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash or over-long input
        return False


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(user: UserAccount, expire_seconds: int = 0) -> str:
    """Encode a signed access token for `user`.

    Args:
        user:           Persisted account (id must be set).
        expire_seconds: Lifetime in seconds. 0 (default) uses
                        Settings.access_token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.access_token_expire_seconds
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "account_type": user.account_type.value,
        "exp": datetime.now(timezone.utc) + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.access_token_secret, algorithm=_ALGORITHM)


def create_refresh_token(user: UserAccount, expire_seconds: int = 0) -> str:
    """Encode a signed refresh token carrying only the account id."""
    duration = expire_seconds if expire_seconds > 0 else _settings.refresh_token_expire_seconds
    payload = {
        "sub": str(user.id),
        "exp": datetime.now(timezone.utc) + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.refresh_token_secret, algorithm=_ALGORITHM)


def issue_token_pair(user: UserAccount) -> TokenPair:
    """Mint a fresh access/refresh pair for `user`."""
    return TokenPair(create_access_token(user), create_refresh_token(user))


def _decode(token: str, secret: str) -> dict | None:
    try:
        payload = jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if not str(payload.get("sub", "")).isdigit():
        return None
    return payload


def decode_access_token(token: str) -> dict | None:
    """Verify signature and expiry of an access token. Returns the payload or None."""
    return _decode(token, _settings.access_token_secret)


def decode_refresh_token(token: str) -> dict | None:
    """Verify signature and expiry of a refresh token. Returns the payload or None."""
    return _decode(token, _settings.refresh_token_secret)


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def _cookie_flags() -> dict:
    return {
        "httponly": True,
        "samesite": "strict",
        "secure": _settings.secure_cookies,
        "path": "/",
    }


def set_auth_cookies(response, pair: TokenPair) -> None:
    """Write both tokens as cookies whose max_age matches each token's lifetime."""
    response.set_cookie(
        ACCESS_COOKIE,
        value=pair.access_token,
        max_age=_settings.access_token_expire_seconds,
        **_cookie_flags(),
    )
    response.set_cookie(
        REFRESH_COOKIE,
        value=pair.refresh_token,
        max_age=_settings.refresh_token_expire_seconds,
        **_cookie_flags(),
    )


def clear_auth_cookies(response) -> None:
    """Expire both token cookies using the same flags they were set with."""
    response.delete_cookie(ACCESS_COOKIE, **_cookie_flags())
    response.delete_cookie(REFRESH_COOKIE, **_cookie_flags())
