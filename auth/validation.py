"""
auth/validation.py -- Input checks shared by the signup and session flows.
"""

from __future__ import annotations

import re

from auth.tokens import MAX_PASSWORD_BYTES
from core.errors import ValidationError

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email or "") is not None


def require_fields(*values: str | None) -> None:
    """Raise ValidationError if any value is missing or blank."""
    if any(v is None or not str(v).strip() for v in values):
        raise ValidationError()


def require_email(email: str, message: str = "Please enter a valid email.") -> None:
    if not is_valid_email(email):
        raise ValidationError(message)


def require_hashable_password(password: str) -> None:
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long.")
