"""
core/errors.py -- Typed error taxonomy for the auth flows.

Every failure a flow or dependency can report is an AppError subclass that
carries the HTTP status and the client-facing message. api/main.py turns any
AppError into the {success: false, message} envelope, so flows never build
responses themselves.

Layer rule: core/ is the kernel -- no imports from api/, auth/, otp/, or mail/.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors that map onto an HTTP status and message."""

    status_code: int = 400
    message: str = "Bad request."

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# 400 -- input and business-rule failures
# ---------------------------------------------------------------------------


class ValidationError(AppError):
    message = "All fields are required"


class PasswordMismatch(AppError):
    message = "Password and ConfirmPassword do not match."


class OtpNotFound(AppError):
    message = "Email not found In OTP Collections. Please check the email address and try again."


class InvalidOtp(AppError):
    message = "Please enter a valid OTP."


class OtpExpired(AppError):
    message = "The OTP has expired. Please request a new one."


class OtpAlreadyUsed(AppError):
    message = "This OTP has already been used. Please request a new one."


class WrongPassword(AppError):
    message = "Password is incorrect. Please enter the correct password"


# ---------------------------------------------------------------------------
# 401 / 403 / 404 / 409
# ---------------------------------------------------------------------------


class NotRegistered(AppError):
    status_code = 401
    message = "User is not registered. Please sign up first"


class Unauthorized(AppError):
    status_code = 401
    message = "Unauthorized request. Please log in first."


class Forbidden(AppError):
    status_code = 403
    message = "You are not authorized to access this route."


class AccountNotFound(AppError):
    status_code = 404
    message = "User not found."


class EmailTaken(AppError):
    status_code = 409
    message = "User already exists. Please log in."


# ---------------------------------------------------------------------------
# 500
# ---------------------------------------------------------------------------


class TokenGenerationError(AppError):
    status_code = 500
    message = "Error generating tokens"
