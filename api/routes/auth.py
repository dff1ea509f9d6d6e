"""
api/routes/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/auth/register          -- create account; sets session cookie
  POST /api/auth/login             -- password login; sets session cookie
  POST /api/auth/logout            -- clears session cookie
  POST /api/auth/send-verify-otp   -- email a verification OTP (requires auth)
  POST /api/auth/verify-account    -- consume verification OTP (requires auth)
  GET  /api/auth/is-auth           -- session check (requires auth)
  POST /api/auth/send-reset-otp    -- email a password-reset OTP
  POST /api/auth/reset-password    -- consume reset OTP and set new password

Every response is the {success, message, ...} envelope with HTTP 200; the
success flag, not the status code, carries the outcome. The session token
only ever travels in the Set-Cookie header, never in the body.

Handlers return JSONResponse so the cookie can be attached, which means
FastAPI does not apply response_model itself. envelope_response() validates
each body through the declared model instead.

Handlers are plain `def` so FastAPI runs the blocking store/bcrypt/SMTP work
in its threadpool.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    Envelope,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SendResetOtpRequest,
    VerifyAccountRequest,
    envelope_response,
)
from auth.dependencies import get_current_user_id
from auth.service import AuthResult, AuthService
from auth.tokens import clear_auth_cookie, set_auth_cookie

# Auth policy:
# - POST /api/auth/register:         public
# - POST /api/auth/login:            public
# - POST /api/auth/logout:           public -- clearing a cookie needs no prior auth
# - POST /api/auth/send-verify-otp:  requires session (get_current_user_id)
# - POST /api/auth/verify-account:   requires session (get_current_user_id)
# - GET  /api/auth/is-auth:          requires session (get_current_user_id)
# - POST /api/auth/send-reset-otp:   public
# - POST /api/auth/reset-password:   public -- the OTP is the credential
router = APIRouter(prefix="/auth")


def _service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _respond(result: AuthResult) -> JSONResponse:
    return envelope_response(result)


def _respond_with_session(request: Request, result: AuthResult) -> JSONResponse:
    """Render the envelope and, on success, attach the session cookie.

    Cache-Control: no-store keeps intermediaries from caching a response
    that carries a Set-Cookie for a fresh session.
    """
    resp = _respond(result)
    if result.success and result.token:
        set_auth_cookie(resp, result.token, request.app.state.settings)
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/register", response_model=Envelope)
def register(request: Request, body: Optional[RegisterRequest] = None) -> JSONResponse:
    """Create an account, start a session and send a best-effort welcome mail."""
    body = body or RegisterRequest()
    result = _service(request).register(body.name, body.email, body.password)
    return _respond_with_session(request, result)


@router.post("/login", response_model=Envelope)
def login(request: Request, body: Optional[LoginRequest] = None) -> JSONResponse:
    """Authenticate with email and password; set the session cookie."""
    body = body or LoginRequest()
    result = _service(request).login(body.email, body.password)
    return _respond_with_session(request, result)


@router.post("/logout", response_model=Envelope)
def logout(request: Request) -> JSONResponse:
    """Tell the browser to drop the session cookie. No server state changes."""
    resp = _respond(_service(request).logout())
    clear_auth_cookie(resp, request.app.state.settings)
    return resp


@router.post("/send-reset-otp", response_model=Envelope)
def send_reset_otp(request: Request, body: Optional[SendResetOtpRequest] = None) -> JSONResponse:
    """Email a 15-minute password reset OTP."""
    body = body or SendResetOtpRequest()
    return _respond(_service(request).send_reset_otp(body.email))


@router.post("/reset-password", response_model=Envelope)
def reset_password(request: Request, body: Optional[ResetPasswordRequest] = None) -> JSONResponse:
    """Consume a reset OTP and replace the password."""
    body = body or ResetPasswordRequest()
    return _respond(_service(request).reset_password(body.email, body.otp, body.new_password))


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.post("/send-verify-otp", response_model=Envelope)
def send_verify_otp(request: Request, user_id: int = Depends(get_current_user_id)) -> JSONResponse:
    """Email a 24-hour verification OTP to the signed-in user."""
    return _respond(_service(request).send_verify_otp(user_id))


@router.post("/verify-account", response_model=Envelope)
def verify_account(
    request: Request,
    body: Optional[VerifyAccountRequest] = None,
    user_id: int = Depends(get_current_user_id),
) -> JSONResponse:
    """Consume the verification OTP and mark the account verified."""
    body = body or VerifyAccountRequest()
    return _respond(_service(request).verify_email(user_id, body.otp))


@router.get("/is-auth", response_model=Envelope)
def is_auth(request: Request, user_id: int = Depends(get_current_user_id)) -> JSONResponse:
    """Succeeds whenever the session cookie verified."""
    return _respond(_service(request).is_authenticated())
