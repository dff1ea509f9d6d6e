"""
api/routes/user.py -- Current-user data endpoint.

Routes:
  GET /api/user/data -- {name, isAccountVerified} for the session's user (requires auth)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import UserDataResponse, envelope_response
from auth.dependencies import get_current_user_id
from auth.service import AuthService

router = APIRouter(prefix="/user")


@router.get("/data", response_model=UserDataResponse)
def get_user_data(request: Request, user_id: int = Depends(get_current_user_id)) -> JSONResponse:
    """Return the public profile fields. The hash and OTP state never leave the store."""
    service: AuthService = request.app.state.auth_service
    return envelope_response(service.get_user_data(user_id), UserDataResponse)
