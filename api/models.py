"""
API request and response models for the auth REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are kept
separate from the dataclasses in auth/models.py, which own the internal
record shape. Route handlers map between the two.

Request fields are optional on purpose: an absent field must reach the
service so it can answer with the MISSING_INPUT envelope ("Missing Details")
instead of a framework-level 422. Length caps still apply to values that are
present.
"""

from typing import Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from auth.service import AuthResult

# bcrypt only looks at the first 72 bytes of a password.
_PASSWORD_MAX = 72

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register."""

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=_PASSWORD_MAX)


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=_PASSWORD_MAX)


class VerifyAccountRequest(BaseModel):
    """Request body for POST /api/auth/verify-account. The user comes from the cookie."""

    otp: Optional[str] = Field(default=None, max_length=32)


class SendResetOtpRequest(BaseModel):
    """Request body for POST /api/auth/send-reset-otp."""

    email: Optional[str] = Field(default=None, max_length=255)


class ResetPasswordRequest(BaseModel):
    """Request body for POST /api/auth/reset-password.

    The wire name is camelCase (newPassword) to match the existing frontend.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = Field(default=None, max_length=255)
    otp: Optional[str] = Field(default=None, max_length=32)
    new_password: Optional[str] = Field(default=None, alias="newPassword", max_length=_PASSWORD_MAX)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class Envelope(BaseModel):
    """Shape shared by every response: success flag, message, optional error code."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    code: Optional[str] = None


class UserData(BaseModel):
    """The only user fields ever exposed. No hash, no OTP state."""

    model_config = ConfigDict(frozen=True)

    name: str
    isAccountVerified: bool


class UserDataResponse(Envelope):
    """Response for GET /api/user/data."""

    userData: Optional[UserData] = None


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def envelope_response(result: AuthResult, model: type[Envelope] = Envelope) -> JSONResponse:
    """Render an AuthResult through its response model as a 200 JSONResponse.

    The body is validated against `model`, so fields the model does not
    declare never reach the client. Unset optional fields (code on success,
    userData on failure) are left out of the JSON.
    """
    body = model.model_validate(result.to_body()).model_dump(exclude_none=True)
    return JSONResponse(status_code=200, content=body)
