"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and flows do
the work; api/models.py owns the HTTP shape.

Layer rule: no imports from api/, otp/, or mail/.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class AccountType(str, Enum):
    STUDENT = "Student"
    TEACHER = "Teacher"
    ADMIN = "Admin"


@dataclass
class UserAccount:
    """A registered college account.

    hashed_password is a bcrypt hash; the plaintext never reaches the store.
    refresh_token holds the token issued at the last login and is cleared on
    logout. otp_id points at the verification record that authorized signup.
    """

    email: str
    first_name: str
    last_name: str
    gender: str
    contact_number: str
    account_type: AccountType = AccountType.STUDENT
    id: int | None = None
    hashed_password: str | None = None
    avatar: str | None = None
    refresh_token: str | None = None
    otp_id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def public(self) -> UserAccount:
        """Return a copy without the password hash and refresh token."""
        return replace(self, hashed_password=None, refresh_token=None)
