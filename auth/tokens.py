"""
auth/tokens.py -- Session token issuing/verification and the session cookie.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with Settings.secret_key and
       carry the user id, issued-at and expiry. Expiry is inside the signed
       payload, so a token cannot be extended without the key. Verification
       returns None on any failure -- the dependency layer turns that into an
       UNAUTHORIZED envelope.

  No server-side session table: validity is signature + expiry only. Logout
       just tells the browser to drop the cookie.

  Cookie: "token", httpOnly, Secure in production only. SameSite is "strict"
       in development and "none" in production, where the SPA is served from a
       different site and TLS is guaranteed. max_age matches the JWT expiry so
       both expire together.

Config is injected: TokenIssuer is built once from Settings at startup and
lives on app.state.token_issuer.

Layer rule: no imports from api/ or client/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from core.config import Settings

logger = logging.getLogger("authapi.auth")

COOKIE_NAME = "token"

_ALGORITHM = "HS256"


class TokenIssuer:
    """Signs and verifies session tokens with the server-held secret."""

    def __init__(self, settings: Settings) -> None:
        self._secret = settings.secret_key
        self.expire_seconds = settings.token_expire_seconds

    def issue(self, user_id: int) -> str:
        """Encode a signed JWT for user_id that expires after expire_seconds."""
        issued_at = datetime.now(timezone.utc)
        payload = {
            "id": user_id,
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> int | None:
        """Return the user id from a valid token, or None.

        None covers a bad signature, an expired token, a token signed with a
        different algorithm, and a payload without an integer id.
        """
        try:
            payload = jwt.decode(token, self._secret, algorithms=[_ALGORITHM])
        except JWTError:
            return None
        user_id = payload.get("id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            logger.warning("Rejected token with malformed id claim")
            return None
        return user_id


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, settings: Settings) -> None:
    """Write the session token as an httpOnly cookie on the response."""
    response.set_cookie(
        COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.is_production,
        samesite=settings.cookie_samesite,
        max_age=settings.token_expire_seconds,
    )


def clear_auth_cookie(response, settings: Settings) -> None:
    """Expire the session cookie.

    Browsers only drop a cookie when the clearing Set-Cookie carries the same
    path and the same Secure/SameSite attributes it was set with.
    """
    response.delete_cookie(
        COOKIE_NAME,
        httponly=True,
        secure=settings.is_production,
        samesite=settings.cookie_samesite,
    )
