"""
otp/models.py -- Domain dataclass for pending email verification codes.

Pattern: Data class (pure data container). OtpStore owns persistence and the
verification rules; routes and flows only pass records around.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class OtpStatus(str, Enum):
    PENDING = "pending"
    CONSUMED = "consumed"


@dataclass
class OtpRecord:
    """One verification code issued to an email address.

    At most one record exists per email -- issuing a new code replaces the
    old one. status flips to CONSUMED once the code has authorized an account.
    """

    email: str
    code: str
    created_at: datetime
    status: OtpStatus = OtpStatus.PENDING
    id: int | None = None

    def expires_at(self, ttl_seconds: int) -> datetime:
        return self.created_at + timedelta(seconds=ttl_seconds)
