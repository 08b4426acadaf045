"""
auth/signup.py -- OTP-gated account creation.

Two steps, both keyed by email:

  request_verification()  issue a fresh code (replacing any previous one)
                          and mail it to the address.
  complete_signup()       check the code, create the account, then mark the
                          code consumed so it cannot authorize a second one.

Both steps hold the OTP store's per-email lock, so a new code cannot be
issued between verification and account creation within one process.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol
from urllib.parse import quote

from sqlalchemy.exc import IntegrityError

from auth.models import UserAccount
from auth.store import UserStore
from auth.tokens import hash_password
from auth.validation import require_email, require_fields, require_hashable_password
from core.errors import EmailTaken, PasswordMismatch
from mail.templates import OTP_SUBJECT, otp_mail_template
from otp.models import OtpRecord
from otp.store import OtpStore

logger = logging.getLogger("collegeauth.auth")

AVATAR_BASE_URL = "https://api.dicebear.com/5.x/initials/svg"


class Mailer(Protocol):
    def send(self, to: str, subject: str, html: str) -> None: ...


def avatar_url(first_name: str, last_name: str) -> str:
    """Initials avatar seeded by the full name. Same name, same URL."""
    return f"{AVATAR_BASE_URL}?seed={quote(f'{first_name} {last_name}')}"


def request_verification(otp_store: OtpStore, mailer: Mailer, first_name: str, email: str) -> OtpRecord:
    """Issue a verification code for `email` and mail it. Returns the new record.

    Mail delivery is best-effort: the mailer only queues the message, so a
    failed send never fails this call.
    """
    require_fields(first_name, email)
    require_email(email)

    with otp_store.lock(email):
        record = otp_store.request_otp(email)

    mailer.send(
        email,
        OTP_SUBJECT,
        otp_mail_template(first_name, record.code, ttl_minutes=max(1, otp_store.ttl_seconds // 60)),
    )
    logger.info("Verification code issued (otp_id=%s)", record.id)
    return record


def complete_signup(
    otp_store: OtpStore,
    user_store: UserStore,
    *,
    first_name: str,
    last_name: str,
    email: str,
    password: str,
    confirm_password: str,
    code: str,
    gender: str,
    contact_number: str,
    now: datetime | None = None,
) -> UserAccount:
    """Create an account once the submitted code checks out.

    Raises ValidationError, PasswordMismatch, the OTP errors from
    OtpStore.consume_otp(), or EmailTaken. No account is written unless every
    check passes.
    """
    require_fields(first_name, last_name, email, password, confirm_password, code, gender, contact_number)
    require_email(email)
    require_hashable_password(password)
    if password != confirm_password:
        raise PasswordMismatch()

    with otp_store.lock(email):
        record = otp_store.consume_otp(email, code, now)

        if user_store.get_by_email(email) is not None:
            raise EmailTaken()

        account = UserAccount(
            email=email,
            first_name=first_name,
            last_name=last_name,
            gender=gender,
            contact_number=contact_number,
            hashed_password=hash_password(password),
            avatar=avatar_url(first_name, last_name),
            otp_id=record.id,
        )
        try:
            user_id = user_store.create_user(account)
        except IntegrityError as exc:
            # Another process registered the address between the check and the insert
            raise EmailTaken() from exc
        otp_store.mark_consumed(record.id)

    logger.info("Account %d registered", user_id)
    return user_store.get_by_id(user_id)
