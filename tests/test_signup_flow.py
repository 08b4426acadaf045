"""Unit tests for auth/signup.py -- OTP issue and account creation.

Covers:
- request_verification() input checks, one record per email, mail contents
- complete_signup() field checks, password mismatch, OTP failures
- successful signup hashes the password, derives the avatar, links the OTP
- a consumed code cannot create a second account
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from auth.signup import avatar_url, complete_signup, request_verification
from auth.tokens import verify_password
from core.errors import (
    EmailTaken,
    InvalidOtp,
    OtpAlreadyUsed,
    OtpExpired,
    OtpNotFound,
    PasswordMismatch,
    ValidationError,
)
from otp.models import OtpStatus


def _signup(otp_store, user_store, code, **overrides):
    fields = {
        "first_name": "Ann",
        "last_name": "Lee",
        "email": "a@b.com",
        "password": "pass-1234",
        "confirm_password": "pass-1234",
        "code": code,
        "gender": "Female",
        "contact_number": "9876543210",
    }
    fields.update(overrides)
    return complete_signup(otp_store, user_store, **fields)


class TestRequestVerification:
    def test_issues_code_and_mails_it(self, otp_store, mailer) -> None:
        record = request_verification(otp_store, mailer, "Ann", "a@b.com")
        assert len(mailer.sent) == 1
        to, subject, body = mailer.sent[0]
        assert to == "a@b.com"
        assert "Verification" in subject
        assert record.code in body
        assert "Ann" in body

    def test_first_name_is_html_escaped(self, otp_store, mailer) -> None:
        request_verification(otp_store, mailer, "<b>Ann</b>", "a@b.com")
        assert "<b>Ann</b>" not in mailer.sent[0][2]

    def test_repeat_request_leaves_one_record(self, otp_store, mailer) -> None:
        request_verification(otp_store, mailer, "Ann", "a@b.com")
        second = request_verification(otp_store, mailer, "Ann", "a@b.com")
        assert otp_store.get("a@b.com").code == second.code
        assert mailer.last_code_for("a@b.com") == second.code

    @pytest.mark.parametrize("first_name,email", [("", "a@b.com"), ("Ann", ""), ("  ", "a@b.com")])
    def test_missing_fields(self, otp_store, mailer, first_name, email) -> None:
        with pytest.raises(ValidationError) as exc_info:
            request_verification(otp_store, mailer, first_name, email)
        assert exc_info.value.message == "All fields are required"
        assert mailer.sent == []

    @pytest.mark.parametrize("email", ["plain", "a@b", "a@b.c", "a b@c.com", "@b.com", "a@b.com\n"])
    def test_bad_email_shape(self, otp_store, mailer, email) -> None:
        with pytest.raises(ValidationError) as exc_info:
            request_verification(otp_store, mailer, "Ann", email)
        assert exc_info.value.message == "Please enter a valid email."
        assert otp_store.get(email) is None


class TestCompleteSignup:
    def test_success_creates_hashed_account(self, otp_store, user_store, mailer) -> None:
        record = request_verification(otp_store, mailer, "Ann", "a@b.com")
        account = _signup(otp_store, user_store, record.code)

        stored = user_store.get_by_email("a@b.com")
        assert stored.id == account.id
        assert stored.hashed_password != "pass-1234"
        assert verify_password("pass-1234", stored.hashed_password)
        assert stored.avatar == avatar_url("Ann", "Lee")
        assert stored.otp_id == record.id
        assert stored.account_type.value == "Student"
        assert stored.refresh_token is None

    def test_avatar_encodes_full_name(self) -> None:
        assert avatar_url("Ann", "Lee") == "https://api.dicebear.com/5.x/initials/svg?seed=Ann%20Lee"
        assert avatar_url("Ann", "Lee") == avatar_url("Ann", "Lee")

    def test_success_marks_code_consumed(self, otp_store, user_store, mailer) -> None:
        record = request_verification(otp_store, mailer, "Ann", "a@b.com")
        _signup(otp_store, user_store, record.code)
        assert otp_store.get("a@b.com").status is OtpStatus.CONSUMED

    def test_password_mismatch_creates_nothing(self, otp_store, user_store, mailer) -> None:
        record = request_verification(otp_store, mailer, "Ann", "a@b.com")
        with pytest.raises(PasswordMismatch):
            _signup(otp_store, user_store, record.code, confirm_password="different")
        assert user_store.get_by_email("a@b.com") is None
        assert otp_store.get("a@b.com").status is OtpStatus.PENDING

    def test_missing_field(self, otp_store, user_store) -> None:
        with pytest.raises(ValidationError):
            _signup(otp_store, user_store, "123456", gender="")

    def test_bad_email(self, otp_store, user_store) -> None:
        with pytest.raises(ValidationError):
            _signup(otp_store, user_store, "123456", email="not-an-email")

    def test_over_long_password(self, otp_store, user_store, mailer) -> None:
        record = request_verification(otp_store, mailer, "Ann", "a@b.com")
        long_pw = "x" * 73
        with pytest.raises(ValidationError):
            _signup(otp_store, user_store, record.code, password=long_pw, confirm_password=long_pw)

    def test_no_otp_requested(self, otp_store, user_store) -> None:
        with pytest.raises(OtpNotFound):
            _signup(otp_store, user_store, "123456")

    def test_wrong_code(self, otp_store, user_store, mailer) -> None:
        record = request_verification(otp_store, mailer, "Ann", "a@b.com")
        wrong = "000000" if record.code != "000000" else "111111"
        with pytest.raises(InvalidOtp):
            _signup(otp_store, user_store, wrong)
        assert user_store.get_by_email("a@b.com") is None

    def test_expired_code(self, otp_store, user_store, mailer) -> None:
        record = request_verification(otp_store, mailer, "Ann", "a@b.com")
        with pytest.raises(OtpExpired):
            _signup(otp_store, user_store, record.code, now=record.created_at + timedelta(minutes=5, milliseconds=1))
        assert user_store.get_by_email("a@b.com") is None

    def test_code_is_single_use(self, otp_store, user_store, mailer) -> None:
        record = request_verification(otp_store, mailer, "Ann", "a@b.com")
        _signup(otp_store, user_store, record.code)
        with pytest.raises(OtpAlreadyUsed):
            _signup(otp_store, user_store, record.code)

    def test_registered_email_rejected(self, otp_store, user_store, mailer) -> None:
        first = request_verification(otp_store, mailer, "Ann", "a@b.com")
        _signup(otp_store, user_store, first.code)
        second = request_verification(otp_store, mailer, "Ann", "a@b.com")
        with pytest.raises(EmailTaken):
            _signup(otp_store, user_store, second.code)
        # The unused code stays pending
        assert otp_store.get("a@b.com").status is OtpStatus.PENDING

    def test_over_long_password_checked_before_confirmation(self, otp_store, user_store, mailer) -> None:
        record = request_verification(otp_store, mailer, "Ann", "a@b.com")
        with pytest.raises(ValidationError):
            _signup(otp_store, user_store, record.code, password="x" * 73, confirm_password="y" * 73)

    def test_trailing_newline_cannot_register_same_mailbox(self, otp_store, user_store, mailer) -> None:
        first = request_verification(otp_store, mailer, "Ann", "a@b.com")
        _signup(otp_store, user_store, first.code)

        with pytest.raises(ValidationError):
            request_verification(otp_store, mailer, "Ann", "a@b.com\n")
        with pytest.raises(ValidationError):
            _signup(otp_store, user_store, first.code, email="a@b.com\n")
        assert user_store.get_by_email("a@b.com\n") is None
