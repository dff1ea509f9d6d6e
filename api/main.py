"""
api/main.py -- FastAPI application entry point for the auth API.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware -- one configured browser origin, credentials allowed so
                       the session cookie rides along.
  2. log_requests   -- method, path, status, latency, client host.

Lifespan builds the collaborators once from Settings (store, token issuer,
mailer, auth service) and closes the store on shutdown. Nothing reads the
environment after startup.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import Envelope, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.user import router as user_router
from auth.errors import DEFAULT_MESSAGES, AuthError, AuthErrorCode
from auth.mailer import Mailer
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer
from core.config import Settings, get_settings

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("authapi.api")

_settings = get_settings()


def build_auth_service(settings: Settings, store: UserStore) -> AuthService:
    """Wire the protocol engine from Settings and an open store."""
    return AuthService(
        store,
        TokenIssuer(settings),
        Mailer(settings),
        bcrypt_rounds=settings.bcrypt_rounds,
        verify_otp_ttl=settings.verify_otp_ttl_seconds,
        reset_otp_ttl=settings.reset_otp_ttl_seconds,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create shared collaborators on startup; release them on shutdown."""
    logger.info("Auth API starting up (environment=%s)", _settings.environment)
    app.state.settings = _settings
    app.state.user_store = UserStore(_settings.database_url)
    app.state.auth_service = build_auth_service(_settings, app.state.user_store)
    app.state.token_issuer = app.state.auth_service.tokens
    if not app.state.auth_service.mailer.enabled:
        logger.warning("SMTP_HOST not set -- OTP emails will report delivery failure")

    yield

    app.state.user_store.close()
    logger.info("Auth API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Auth API",
    description="Email/password authentication with OTP email verification and password reset.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[_settings.client_origin],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
    max_age=3600,
)


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

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(user_router, prefix="/api", tags=["User"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same {success: false, message, code} envelope so
# the frontend can branch on `success` for every response.
# ---------------------------------------------------------------------------


def _failure(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=Envelope(success=False, message=message, code=code).model_dump(),
    )


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Failures raised before a route body runs (the session dependency)."""
    return _failure(200, exc.code.value, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON or a field over its length cap."""
    return _failure(422, "validation_error", "Request validation failed.")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown paths, wrong methods and any other framework-raised HTTP error."""
    return _failure(exc.status_code, f"http_{exc.status_code}", str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The raw exception goes to the server log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _failure(500, AuthErrorCode.INTERNAL.value, DEFAULT_MESSAGES[AuthErrorCode.INTERNAL])


# ---------------------------------------------------------------------------
# Liveness
# ---------------------------------------------------------------------------


@app.get("/", include_in_schema=False)
async def root() -> PlainTextResponse:
    return PlainTextResponse("API Working")


@app.get("/api/health", tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=__version__)
