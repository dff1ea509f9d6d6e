"""
client/app_state.py -- Client-side login state for consumers of the auth API.

Mirrors what a browser frontend keeps: whether the user is logged in and the
public user data. The session cookie is held by the HTTP session object, so
after a login through the same session the state refresh sees it.

Usage:
    state = AppState("http://localhost:4000")
    state.session.post(state.url("/api/auth/login"), json={"email": e, "password": p})
    state.get_auth_state()      # True, and state.user_data is filled in

Layer rule: talks to the API over HTTP only. No imports from api/ or auth/.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

logger = logging.getLogger("authapi.client")

IS_AUTH_PATH = "/api/auth/is-auth"
USER_DATA_PATH = "/api/user/data"


class AppState:
    """Tracks is_logged_in and user_data from the API's responses.

    session defaults to a requests.Session, which stores the httpOnly
    "token" cookie the server sets. Any object with a requests-style
    get(url, timeout=...) returning a response with .json() works.
    """

    def __init__(self, backend_url: str, session: Optional[Any] = None, timeout: float = 10) -> None:
        self.backend_url = backend_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.is_logged_in: bool = False
        self.user_data: Optional[dict[str, Any]] = None

    def url(self, path: str) -> str:
        return f"{self.backend_url}{path}"

    def _get_json(self, path: str) -> Optional[dict[str, Any]]:
        """GET path and decode the envelope. Returns None on transport or decode failure."""
        try:
            resp = self.session.get(self.url(path), timeout=self.timeout)
            return resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("GET %s failed: %s", path, exc)
            return None

    def get_auth_state(self) -> bool:
        """Ask the API whether the session cookie is valid; refresh user data if so."""
        data = self._get_json(IS_AUTH_PATH)
        if data and data.get("success"):
            self.is_logged_in = True
            self.get_user_data()
        else:
            self.is_logged_in = False
            self.user_data = None
        return self.is_logged_in

    def get_user_data(self) -> Optional[dict[str, Any]]:
        """Fetch {name, isAccountVerified}; None when the API reports failure."""
        data = self._get_json(USER_DATA_PATH)
        if data and data.get("success"):
            self.user_data = data.get("userData")
        else:
            if data:
                logger.info("User data unavailable: %s", data.get("message"))
            self.user_data = None
        return self.user_data

    def mark_logged_out(self) -> None:
        """Reset local state after a logout call."""
        self.is_logged_in = False
        self.user_data = None
