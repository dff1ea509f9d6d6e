"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The session token is read from the "token" cookie set by register/login and
verified through app.state.token_issuer. There is no session table: a valid
signature and an unexpired claim are the whole check.

try_get_current_user_id() is the soft variant (returns None on failure).
get_current_user_id() wraps it and raises AuthError(UNAUTHORIZED), which the
API's exception handler renders as the standard failure envelope before any
route logic runs.

Layer rule: no imports from api/ or client/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import AuthError, AuthErrorCode
from auth.tokens import COOKIE_NAME, TokenIssuer


def try_get_current_user_id(request: Request) -> int | None:
    """Return the user id carried by the request's session cookie, or None.

    Never raises -- callers that need a hard failure use get_current_user_id().
    """
    token = request.cookies.get(COOKIE_NAME)
    if not token:
        return None
    issuer: TokenIssuer = request.app.state.token_issuer
    return issuer.verify(token)


def get_current_user_id(request: Request) -> int:
    """Require a valid session cookie.

    Use as a FastAPI dependency:
        @router.post("/protected")
        def route(user_id: int = Depends(get_current_user_id)): ...
    """
    user_id = try_get_current_user_id(request)
    if user_id is None:
        raise AuthError(AuthErrorCode.UNAUTHORIZED)
    return user_id
