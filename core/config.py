"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the college auth API happen here. No
module should call os.getenv() or os.environ.get() directly -- import
get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. access_token_secret -> ACCESS_TOKEN_SECRET).

  @model_validator(mode="after"): Cross-field validation once every field is
      resolved. Dev mode generates missing token secrets with a warning,
      production mode refuses to start without them.

Security notes:
  Token secrets shorter than 32 chars are rejected outright. The access and
  refresh secrets must differ -- a refresh token must never verify as an
  access token.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, otp/, or mail/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("collegeauth.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    database_url: str = "sqlite:///./college_auth.db"
    host: str = "0.0.0.0"  # nosec B104 -- bind address, overridden in deployment
    port: int = 4000
    cors_origins: list[str] = ["http://localhost:3000"]
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "testserver", "*.localhost"]

    # ------------------------------------------------------------------
    # Tokens and cookies
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured".
    access_token_secret: str = ""
    refresh_token_secret: str = ""
    access_token_expire_seconds: int = 3600
    refresh_token_expire_seconds: int = 10 * 24 * 3600
    secure_cookies: bool = True

    # ------------------------------------------------------------------
    # OTP
    # ------------------------------------------------------------------

    otp_ttl_seconds: int = 300
    otp_purge_interval_seconds: int = 3600
    # Legacy clients read the code from the /sendOTP body. Off by default:
    # the code should only ever reach the user's mailbox.
    otp_echo_in_response: bool = False

    # ------------------------------------------------------------------
    # Mail (fastapi-mail)
    # ------------------------------------------------------------------

    mail_server: str = "localhost"
    mail_port: int = 587
    mail_username: str = ""
    mail_password: str = ""
    mail_from: str = "no-reply@collegeapp.in"
    mail_from_name: str = "Jhunjhunwala Group of Institutions"
    mail_starttls: bool = True
    mail_ssl_tls: bool = False
    mail_suppress_send: bool = False
    mail_queue_size: int = 100

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_token_secrets(self) -> "Settings":
        """Enforce the token secret policy.

        Dev mode (DEBUG=true): auto-generate missing secrets with a warning.
            Sessions will not survive restart.

        Production mode: refuse to start if either secret is missing.

        Both modes: reject secrets shorter than 32 characters and identical
            access/refresh secrets.
        """
        for field in ("access_token_secret", "refresh_token_secret"):
            value = getattr(self, field)
            if not value:
                if not self.debug:
                    raise ValueError(
                        f"{field.upper()} is required in production mode. "
                        "Set it in your environment or .env file. "
                        "To run in development mode, set DEBUG=true."
                    )
                setattr(self, field, secrets.token_hex(32))
                logger.warning("Using auto-generated %s. Sessions will not persist across restarts.", field.upper())
            elif len(value) < 32:
                raise ValueError(f"{field.upper()} must be at least 32 characters.")
        if self.access_token_secret == self.refresh_token_secret:
            raise ValueError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
