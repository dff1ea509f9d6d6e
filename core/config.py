"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads happen here. No module should call os.getenv()
or os.environ.get() directly. The Settings object is built once at startup
(get_settings()) and handed to the token issuer, mailer, store and service
explicitly, so nothing reads the environment at request time.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  @model_validator(mode="after"): cross-field validation once all fields are
      resolved. Implements the DEBUG-conditional SECRET_KEY policy and the
      environment name check.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT signing relies
  on key entropy -- a short key makes session tokens forgeable.

  Outside DEBUG mode a missing SECRET_KEY is a hard startup failure, so a
  production deploy can never run with a throwaway random key.

Layer rule: core/ is the kernel. This module may not import from api/, auth/
or client/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("authapi.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'authapi.db'}"

_ENVIRONMENTS = {"development", "production"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `secret_key` reads from SECRET_KEY, `environment` reads from ENVIRONMENT.
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
    # "production" turns on secure cookies and SameSite=None.
    environment: str = "development"
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL
    # Single browser origin allowed to make credentialed requests.
    client_origin: str = "http://localhost:5173"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = 7 * 24 * 60 * 60
    bcrypt_rounds: int = 10
    verify_otp_ttl_seconds: int = 24 * 60 * 60
    reset_otp_ttl_seconds: int = 15 * 60

    # ------------------------------------------------------------------
    # Mail (empty smtp_host disables delivery)
    # ------------------------------------------------------------------

    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_starttls: bool = True
    smtp_timeout_seconds: float = 10.0
    sender_email: str = ""

    # ------------------------------------------------------------------
    # Derived
    # ------------------------------------------------------------------

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cookie_samesite(self) -> str:
        """SameSite policy for the session cookie.

        Cross-site delivery from the SPA origin needs SameSite=None, which
        browsers only accept together with Secure, so it is used only in
        production where TLS is guaranteed.
        """
        return "none" if self.is_production else "strict"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Enforce the environment name and the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Otherwise: refuse to start if SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        self.environment = self.environment.strip().lower()
        if self.environment not in _ENVIRONMENTS:
            raise ValueError(f"ENVIRONMENT must be one of {sorted(_ENVIRONMENTS)}, got {self.environment!r}.")
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning(
                    "WARNING: Using auto-generated SECRET_KEY. " "Sessions will not persist across restarts."
                )
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if self.bcrypt_rounds < 4 or self.bcrypt_rounds > 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
