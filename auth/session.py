"""
auth/session.py -- Login, password change, and logout.

Token lifecycle:
  login()   mints an access/refresh pair and stores the refresh token on the
            account, replacing whatever the previous login stored.
  logout()  clears the stored refresh token.

Access tokens stay valid until they expire; they are not tracked server-side.
"""

from __future__ import annotations

import logging

from jose import JWTError

from auth.models import UserAccount
from auth.store import UserStore
from auth.tokens import TokenPair, hash_password, issue_token_pair, verify_password
from auth.validation import require_email, require_fields, require_hashable_password
from core.errors import AccountNotFound, NotRegistered, PasswordMismatch, TokenGenerationError, WrongPassword

logger = logging.getLogger("collegeauth.auth")


def login(user_store: UserStore, email: str, password: str) -> tuple[UserAccount, TokenPair]:
    """Check credentials and issue tokens. Returns (account without secrets, tokens)."""
    require_fields(email, password)
    require_email(email, "Please enter a valid email")

    user = user_store.get_by_email(email)
    if user is None:
        raise NotRegistered()
    if not verify_password(password, user.hashed_password):
        raise WrongPassword()

    try:
        pair = issue_token_pair(user)
    except JWTError as exc:
        logger.exception("Token generation failed for account %d", user.id)
        raise TokenGenerationError() from exc
    user_store.set_refresh_token(user.id, pair.refresh_token)

    logger.info("Account %d logged in", user.id)
    return user_store.get_by_id(user.id).public(), pair


def change_password(
    user_store: UserStore,
    user: UserAccount,
    old_password: str,
    new_password: str,
    confirm_password: str,
) -> None:
    """Replace the password of an authenticated account."""
    require_fields(old_password, new_password, confirm_password)

    stored = user_store.get_by_id(user.id)
    if stored is None:
        raise AccountNotFound()
    if not verify_password(old_password, stored.hashed_password):
        raise WrongPassword("Old Password is incorrect. Please enter the valid Old password")
    if new_password != confirm_password:
        raise PasswordMismatch("New Password And Confirm Password is Not Matched")
    require_hashable_password(new_password)

    user_store.update_user(stored.id, hashed_password=hash_password(new_password))
    logger.info("Account %d changed password", stored.id)


def logout(user_store: UserStore, user: UserAccount) -> None:
    """Drop the stored refresh token of an authenticated account."""
    if not user_store.set_refresh_token(user.id, None):
        raise AccountNotFound()
    logger.info("Account %d logged out", user.id)
