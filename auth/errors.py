"""
auth/errors.py -- Error taxonomy for the auth protocol.

Every failure the service can report is an AuthErrorCode. Each code carries a
default client-facing message; call sites may pass a more specific message
(e.g. login reports NOT_FOUND as "Invalid email"). Messages are chosen here
deliberately -- exception text from libraries is never forwarded to clients.

Layer rule: no imports from api/ or client/.
"""

from __future__ import annotations

from enum import Enum


class AuthErrorCode(str, Enum):
    MISSING_INPUT = "missing_input"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    BAD_CREDENTIAL = "bad_credential"
    INVALID_OTP = "invalid_otp"
    EXPIRED = "expired"
    ALREADY_VERIFIED = "already_verified"
    DELIVERY_FAILED = "delivery_failed"
    UNAUTHORIZED = "unauthorized"
    INTERNAL = "internal_error"


DEFAULT_MESSAGES: dict[AuthErrorCode, str] = {
    AuthErrorCode.MISSING_INPUT: "Missing Details",
    AuthErrorCode.CONFLICT: "User already exists",
    AuthErrorCode.NOT_FOUND: "User not found",
    AuthErrorCode.BAD_CREDENTIAL: "Invalid password",
    AuthErrorCode.INVALID_OTP: "Invalid OTP",
    AuthErrorCode.EXPIRED: "OTP Expired",
    AuthErrorCode.ALREADY_VERIFIED: "Account already Verified",
    AuthErrorCode.DELIVERY_FAILED: "Failed to send email",
    AuthErrorCode.UNAUTHORIZED: "Not Authorized. Login Again",
    AuthErrorCode.INTERNAL: "Something went wrong. Please try again later.",
}


class AuthError(Exception):
    """A protocol failure with a typed code and a client-safe message."""

    def __init__(self, code: AuthErrorCode, message: str | None = None) -> None:
        self.code = code
        self.message = message or DEFAULT_MESSAGES[code]
        super().__init__(self.message)


class DuplicateEmailError(Exception):
    """Raised by UserStore.create_user() when the email is already registered."""


class MailDeliveryError(Exception):
    """Raised by Mailer when the SMTP transport fails or is not configured."""
