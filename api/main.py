"""
api/main.py -- FastAPI application entry point for the college auth API.

Run with:  uvicorn asgi:app --reload
           python asgi.py

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
                              (credentials allowed: tokens travel as cookies)

Lifespan handles startup (stores, mail dispatcher, OTP purge task) and
shutdown (cancel purge task, stop dispatcher, close stores) symmetrically.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException

from api.models import HealthResponse
from api.routes.v1.auth import router as auth_router
from auth.store import UserStore
from core.config import get_settings
from core.errors import AppError
from mail.dispatcher import MailDispatcher, build_mail_config
from otp.store import OtpStore

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("collegeauth.api")

settings = get_settings()

# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(app: FastAPI) -> None:
    """Delete expired OTP records every otp_purge_interval_seconds.

    CancelledError from task.cancel() during shutdown propagates out of
    asyncio.sleep and unwinds the coroutine.
    """
    while True:
        await asyncio.sleep(settings.otp_purge_interval_seconds)
        try:
            await asyncio.to_thread(app.state.otp_store.purge_expired)
        except Exception:
            logger.exception("OTP purge failed")


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. Stores are built from the settings once and shared through
    app.state -- route handlers never construct their own.
    """
    logger.info("College auth API starting up")
    app.state.user_store = UserStore(settings.database_url)
    app.state.otp_store = OtpStore(settings.database_url, ttl_seconds=settings.otp_ttl_seconds)
    logger.info("Stores initialized")
    app.state.mailer = MailDispatcher(build_mail_config(settings), queue_size=settings.mail_queue_size)
    await app.state.mailer.start()
    app.state.purge_task = asyncio.create_task(_purge_loop(app))

    yield

    app.state.purge_task.cancel()
    await app.state.mailer.stop()
    app.state.otp_store.close()
    app.state.user_store.close()
    logger.info("College auth API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="College Auth API",
    description="Email/OTP verified signup, token login, and role-gated routes for the college app.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every failure leaves as {success: false, message} with the status the
# error carries. Clients only ever parse one error shape.
# ---------------------------------------------------------------------------


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies (non-JSON, wrong types) get the same 400 as missing fields."""
    return _error(400, "All fields are required")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "Internal server error.")


# ---------------------------------------------------------------------------
# Public endpoints outside the versioned prefix
# ---------------------------------------------------------------------------


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def home() -> str:
    return "Welcome To Jhunjhunwala Group of Institutions College App API Home Page"


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and database reachability."""
    try:
        db_status = "ok" if request.app.state.user_store.ping() else "error"
    except Exception:
        logger.exception("Health check database ping failed")
        db_status = "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": db_status})
