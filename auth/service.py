"""
auth/service.py -- The auth protocol: register, login, OTP verification, reset.

Every public method returns an AuthResult and never raises. Inside a method,
failures are raised as AuthError and converted at the boundary by
_run(); anything else is an unexpected fault, logged with its traceback and
reported as a generic INTERNAL failure so no internals reach the client.

All state lives in the user record. OTP consumption goes through the store's
compare-and-clear updates, so a code is accepted at most once even when two
requests race with it.

Known weakness kept on purpose: login reports an unknown email ("Invalid
email") differently from a wrong password ("Invalid password"), which lets a
caller probe which emails are registered. Timing is equalized with a dummy
bcrypt check so the response time does not leak it a second way.

Layer rule: no imports from api/ or client/.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from auth.errors import DEFAULT_MESSAGES, AuthError, AuthErrorCode, DuplicateEmailError, MailDeliveryError
from auth.mailer import Mailer
from auth.models import User
from auth.otp import RESET_OTP_TTL_SECONDS, VERIFY_OTP_TTL_SECONDS, expires_at, generate_otp, is_expired
from auth.passwords import DEFAULT_ROUNDS, burn_verification, hash_password, verify_password
from auth.store import UserStore
from auth.tokens import TokenIssuer

logger = logging.getLogger("authapi.auth")


@dataclass
class AuthResult:
    """Outcome of one protocol operation.

    token is set only by register/login and is delivered as a cookie by the
    HTTP layer -- it is never part of the JSON body.
    """

    success: bool
    message: str
    code: AuthErrorCode | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    token: str | None = None

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": self.success, "message": self.message}
        if self.code is not None:
            body["code"] = self.code.value
        body.update(self.payload)
        return body


def _ok(message: str, **payload: Any) -> AuthResult:
    return AuthResult(success=True, message=message, payload=payload)


class AuthService:
    """Orchestrates the credential store, hasher, OTP generator, mailer and token issuer."""

    def __init__(
        self,
        store: UserStore,
        tokens: TokenIssuer,
        mailer: Mailer,
        *,
        bcrypt_rounds: int = DEFAULT_ROUNDS,
        verify_otp_ttl: int = VERIFY_OTP_TTL_SECONDS,
        reset_otp_ttl: int = RESET_OTP_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.tokens = tokens
        self.mailer = mailer
        self.bcrypt_rounds = bcrypt_rounds
        self.verify_otp_ttl = verify_otp_ttl
        self.reset_otp_ttl = reset_otp_ttl
        self.clock = clock

    # ------------------------------------------------------------------
    # Boundary
    # ------------------------------------------------------------------

    def _run(self, operation: str, fn: Callable[[], AuthResult]) -> AuthResult:
        try:
            return fn()
        except AuthError as exc:
            logger.info("%s failed: %s", operation, exc.code.value)
            return AuthResult(success=False, message=exc.message, code=exc.code)
        except Exception:
            logger.exception("%s failed with an unexpected error", operation)
            return AuthResult(
                success=False,
                message=DEFAULT_MESSAGES[AuthErrorCode.INTERNAL],
                code=AuthErrorCode.INTERNAL,
            )

    # ------------------------------------------------------------------
    # Registration, login, logout
    # ------------------------------------------------------------------

    def register(self, name: str | None, email: str | None, password: str | None) -> AuthResult:
        def op() -> AuthResult:
            if not name or not email or not password:
                raise AuthError(AuthErrorCode.MISSING_INPUT)
            if self.store.get_by_email(email) is not None:
                raise AuthError(AuthErrorCode.CONFLICT)

            user = User(name=name, email=email, hashed_password=hash_password(password, self.bcrypt_rounds))
            try:
                user_id = self.store.create_user(user)
            except DuplicateEmailError as exc:
                # Lost a race with a concurrent registration for the same email.
                raise AuthError(AuthErrorCode.CONFLICT) from exc
            token = self.tokens.issue(user_id)

            try:
                self.mailer.send_welcome(email)
            except MailDeliveryError as exc:
                logger.warning("Welcome mail to user %d not delivered: %s", user_id, exc)

            logger.info("Registered user %d", user_id)
            result = _ok("Registration successful")
            result.token = token
            return result

        return self._run("register", op)

    def login(self, email: str | None, password: str | None) -> AuthResult:
        def op() -> AuthResult:
            if not email or not password:
                raise AuthError(AuthErrorCode.MISSING_INPUT, "Email and password are required")
            user = self.store.get_by_email(email)
            if user is None:
                burn_verification(password)
                raise AuthError(AuthErrorCode.NOT_FOUND, "Invalid email")
            if not verify_password(password, user.hashed_password):
                raise AuthError(AuthErrorCode.BAD_CREDENTIAL)

            result = _ok("Login successful")
            result.token = self.tokens.issue(user.id)
            return result

        return self._run("login", op)

    def logout(self) -> AuthResult:
        return _ok("Logged Out successfully")

    def is_authenticated(self) -> AuthResult:
        """Token verification already ran in the dependency layer; reaching here means success."""
        return _ok("User is authenticated")

    # ------------------------------------------------------------------
    # Email verification
    # ------------------------------------------------------------------

    def send_verify_otp(self, user_id: int | None) -> AuthResult:
        def op() -> AuthResult:
            user = self._user_by_id(user_id)
            if user.is_verified:
                raise AuthError(AuthErrorCode.ALREADY_VERIFIED)

            otp = generate_otp()
            self.store.set_verify_otp(user.id, otp, expires_at(self.verify_otp_ttl, self.clock()))

            try:
                self.mailer.send_verify_otp(user.email, otp)
            except MailDeliveryError as exc:
                # The code stays stored; resending overwrites it.
                logger.error("Verification OTP mail to user %d not delivered: %s", user.id, exc)
                raise AuthError(AuthErrorCode.DELIVERY_FAILED, "Failed to send verification email") from exc
            return _ok("Verification OTP Sent on Email")

        return self._run("send_verify_otp", op)

    def verify_email(self, user_id: int | None, otp: str | None) -> AuthResult:
        def op() -> AuthResult:
            if not user_id or not otp:
                raise AuthError(AuthErrorCode.MISSING_INPUT)
            user = self._user_by_id(user_id)
            if user.verify_otp == "" or user.verify_otp != otp:
                raise AuthError(AuthErrorCode.INVALID_OTP)

            # One whole-second timestamp for both the expiry check and the consume.
            now = int(self.clock())
            if is_expired(user.verify_otp_expire_at, now):
                raise AuthError(AuthErrorCode.EXPIRED)

            if not self.store.consume_verify_otp(user.id, otp, now):
                raise AuthError(AuthErrorCode.INVALID_OTP)
            logger.info("User %d verified their email", user.id)
            return _ok("Email verified successfully")

        return self._run("verify_email", op)

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    def send_reset_otp(self, email: str | None) -> AuthResult:
        def op() -> AuthResult:
            if not email:
                raise AuthError(AuthErrorCode.MISSING_INPUT, "Email is required")
            user = self.store.get_by_email(email)
            if user is None:
                raise AuthError(AuthErrorCode.NOT_FOUND)

            otp = generate_otp()
            self.store.set_reset_otp(user.id, otp, expires_at(self.reset_otp_ttl, self.clock()))

            try:
                self.mailer.send_reset_otp(user.email, otp)
            except MailDeliveryError as exc:
                logger.error("Reset OTP mail to user %d not delivered: %s", user.id, exc)
                raise AuthError(AuthErrorCode.DELIVERY_FAILED, "Failed to send reset email") from exc
            return _ok("OTP sent to your email")

        return self._run("send_reset_otp", op)

    def reset_password(self, email: str | None, otp: str | None, new_password: str | None) -> AuthResult:
        def op() -> AuthResult:
            if not email or not otp or not new_password:
                raise AuthError(AuthErrorCode.MISSING_INPUT, "Email, OTP, and new password are required")
            user = self.store.get_by_email(email)
            if user is None:
                raise AuthError(AuthErrorCode.NOT_FOUND)
            if user.reset_otp == "" or user.reset_otp != otp:
                raise AuthError(AuthErrorCode.INVALID_OTP)

            now = int(self.clock())
            if is_expired(user.reset_otp_expire_at, now):
                raise AuthError(AuthErrorCode.EXPIRED, "OTP is Expired")

            new_hash = hash_password(new_password, self.bcrypt_rounds)
            if not self.store.consume_reset_otp(email, otp, new_hash, now):
                raise AuthError(AuthErrorCode.INVALID_OTP)
            logger.info("User %d reset their password", user.id)
            return _ok("Password has been reset successfully")

        return self._run("reset_password", op)

    # ------------------------------------------------------------------
    # User data
    # ------------------------------------------------------------------

    def get_user_data(self, user_id: int | None) -> AuthResult:
        def op() -> AuthResult:
            if not user_id:
                raise AuthError(AuthErrorCode.MISSING_INPUT, "User ID is required")
            user = self._user_by_id(user_id)
            return _ok(
                "User data fetched",
                userData={"name": user.name, "isAccountVerified": user.is_verified},
            )

        return self._run("get_user_data", op)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _user_by_id(self, user_id: int | None) -> User:
        user = self.store.get_by_id(user_id) if user_id else None
        if user is None:
            raise AuthError(AuthErrorCode.NOT_FOUND)
        return user
