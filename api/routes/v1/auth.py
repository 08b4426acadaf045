"""
api/routes/v1/auth.py -- Signup, session, and role-gated REST endpoints.

Routes (mounted under /api/v1):
  POST /sendOTP         -- issue an email verification code (public)
  POST /signUp          -- create an account with a valid code (public);
                           409 if the email is already registered
  POST /logIn           -- password login; sets accessToken/refreshToken cookies (public)
  POST /changePassword  -- requires auth
  POST /logoutUser      -- requires auth; clears stored refresh token and cookies
  GET  /student         -- requires auth + Student account
  GET  /teacher         -- requires auth + Teacher account

Handlers are plain `def` so FastAPI runs them in its threadpool: bcrypt and
the stores are blocking, and the OTP store's per-email lock is a thread lock.

Errors are raised as core.errors.AppError subclasses by the flows and the
auth dependencies; api/main.py renders them as {success: false, message}.

Security:
  Cache-Control: no-store on every response that carries tokens.
  The OTP code is left out of the /sendOTP body unless OTP_ECHO_IN_RESPONSE is set.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from api.models import (
    AccountView,
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    OtpSentResponse,
    OtpView,
    SendOtpRequest,
    SignupRequest,
    SignupResponse,
)
from auth import session, signup
from auth.dependencies import get_current_user, require_student, require_teacher
from auth.models import UserAccount
from auth.store import UserStore
from auth.tokens import clear_auth_cookies, set_auth_cookies
from core.config import get_settings
from otp.store import OtpStore

router = APIRouter()


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/sendOTP", response_model=OtpSentResponse)
def send_otp(request: Request, body: SendOtpRequest) -> JSONResponse:
    """Issue a fresh verification code for the email and mail it."""
    otp_store: OtpStore = request.app.state.otp_store
    record = signup.request_verification(otp_store, request.app.state.mailer, body.first_name, body.email)
    view = OtpView.from_record(record, otp_store.ttl_seconds, echo_code=get_settings().otp_echo_in_response)
    resp = JSONResponse(
        content=OtpSentResponse(data=view, message="OTP Sent to the User Email Successfully").model_dump(
            by_alias=True, exclude_none=True
        )
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post(
    "/signUp",
    response_model=SignupResponse,
    responses={409: {"description": "Email already registered"}},
)
def sign_up(request: Request, body: SignupRequest) -> SignupResponse:
    """Create an account if the submitted OTP is valid, unexpired, and unused."""
    account = signup.complete_signup(
        request.app.state.otp_store,
        request.app.state.user_store,
        first_name=body.first_name,
        last_name=body.last_name,
        email=body.email,
        password=body.password,
        confirm_password=body.confirm_password,
        code=body.otp,
        gender=body.gender,
        contact_number=body.contact_number,
    )
    return SignupResponse(
        message="The user was successfully registered.",
        data=AccountView.from_account(account),
    )


@router.post("/logIn", response_model=LoginResponse)
def log_in(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return tokens in cookies and body."""
    user_store: UserStore = request.app.state.user_store
    user, pair = session.login(user_store, body.email, body.password)
    resp = JSONResponse(
        content=LoginResponse(
            user=AccountView.from_account(user),
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            message="User logged in successfully",
        ).model_dump(by_alias=True)
    )
    set_auth_cookies(resp, pair)
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/changePassword", response_model=MessageResponse)
def change_password(
    request: Request,
    body: ChangePasswordRequest,
    current_user: UserAccount = Depends(get_current_user),
) -> MessageResponse:
    session.change_password(
        request.app.state.user_store,
        current_user,
        body.old_password,
        body.new_password,
        body.confirm_password,
    )
    return MessageResponse(message="Password changed successfully.")


@router.post("/logoutUser", response_model=MessageResponse)
def logout_user(request: Request, current_user: UserAccount = Depends(get_current_user)) -> JSONResponse:
    """Forget the stored refresh token and clear both cookies."""
    session.logout(request.app.state.user_store, current_user)
    resp = JSONResponse(content=MessageResponse(message="User logged out successfully.").model_dump())
    clear_auth_cookies(resp)
    return resp


@router.get("/student", response_class=PlainTextResponse)
def student_area(current_user: UserAccount = Depends(require_student)) -> str:
    return "this is secure of student"


@router.get("/teacher", response_class=PlainTextResponse)
def teacher_area(current_user: UserAccount = Depends(require_teacher)) -> str:
    return "this is secure of teacher"
