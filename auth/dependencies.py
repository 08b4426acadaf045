"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The access token is read from, in priority order:
  1. the "accessToken" cookie -- set by POST /logIn for browser clients.
  2. an Authorization: Bearer <token> header -- API clients.

get_current_user() is the per-request gate: no token, a token that fails
verification (expired, malformed, bad signature), or a token whose subject
no longer resolves to an account all raise Unauthorized. The gate keeps no
cache -- every request is re-evaluated from scratch.

require_role() builds a dependency that additionally raises Forbidden when
the authenticated account has a different account type.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import Depends, Request

from auth.models import AccountType, UserAccount
from auth.store import UserStore
from auth.tokens import ACCESS_COOKIE, decode_access_token
from core.errors import Forbidden, Unauthorized

logger = logging.getLogger("collegeauth.auth")


def _extract_token(request: Request) -> str | None:
    token: str | None = request.cookies.get(ACCESS_COOKIE)
    if not token:
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header[7:].strip()
    return token or None


def get_current_user(request: Request) -> UserAccount:
    """Require a valid access token. Returns the account without secrets.

    Use as a FastAPI dependency:
        @router.post("/changePassword")
        async def route(user: UserAccount = Depends(get_current_user)): ...
    """
    token = _extract_token(request)
    if token is None:
        raise Unauthorized()

    payload = decode_access_token(token)
    if payload is None:
        raise Unauthorized("Invalid or expired access token.")

    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(int(payload["sub"]))
    if user is None:
        logger.info("Access token subject %s no longer resolves to an account", payload["sub"])
        raise Unauthorized("Invalid Access Token")

    identity = user.public()
    request.state.user = identity
    return identity


def require_role(role: AccountType) -> Callable[..., UserAccount]:
    """Return a dependency that admits only accounts of `role`."""

    def dependency(user: UserAccount = Depends(get_current_user)) -> UserAccount:
        if user.account_type != role:
            raise Forbidden(f"You are not authorized. This route is protected for {role.value} accounts.")
        return user

    dependency.__name__ = f"require_{role.value.lower()}"
    return dependency


require_student = require_role(AccountType.STUDENT)
require_teacher = require_role(AccountType.TEACHER)
