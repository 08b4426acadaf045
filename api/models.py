"""
API request and response models for the college auth REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
separate from the dataclasses in auth/models.py and otp/models.py, which own
the internal domain representation. Route handlers map between the two.

JSON keys are camelCase (firstName, confirmPassword, ...) to stay compatible
with existing clients; Python attributes stay snake_case via alias_generator.

Request fields default to "" so missing fields reach the flows, which report
them with the same "All fields are required" message as blank ones.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.models import UserAccount
from otp.models import OtpRecord


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SendOtpRequest(CamelModel):
    """Request body for POST /api/v1/sendOTP."""

    first_name: str = ""
    email: str = ""


class SignupRequest(CamelModel):
    """Request body for POST /api/v1/signUp."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    otp: str = ""
    gender: str = ""
    contact_number: str = ""


class LoginRequest(CamelModel):
    email: str = ""
    password: str = ""


class ChangePasswordRequest(CamelModel):
    old_password: str = ""
    new_password: str = ""
    confirm_password: str = ""


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AccountView(CamelModel):
    """Account as shown to clients -- never includes the password hash or refresh token."""

    id: int
    email: str
    first_name: str
    last_name: str
    gender: str
    contact_number: str
    account_type: str
    avatar: Optional[str] = None
    otp_id: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_account(cls, user: UserAccount) -> "AccountView":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            gender=user.gender,
            contact_number=user.contact_number,
            account_type=user.account_type.value,
            avatar=user.avatar,
            otp_id=user.otp_id,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class OtpView(CamelModel):
    """Metadata about an issued code. `otp` is only filled when echoing is enabled."""

    email: str
    created_at: str
    expires_at: str
    otp: Optional[str] = None

    @classmethod
    def from_record(cls, record: OtpRecord, ttl_seconds: int, echo_code: bool = False) -> "OtpView":
        return cls(
            email=record.email,
            created_at=record.created_at.isoformat(),
            expires_at=record.expires_at(ttl_seconds).isoformat(),
            otp=record.code if echo_code else None,
        )


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class OtpSentResponse(MessageResponse):
    model_config = ConfigDict(populate_by_name=True)

    data: OtpView = Field(alias="Data")


class SignupResponse(MessageResponse):
    data: AccountView


class LoginResponse(MessageResponse):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user: AccountView
    access_token: str
    refresh_token: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str]
