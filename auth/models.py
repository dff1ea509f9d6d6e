"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the
service do the work.

Layer rule: no imports from api/ or client/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """One registered identity, keyed by email.

    hashed_password is a bcrypt digest and never the plaintext.

    OTP fields use "" / 0 as the "no code" sentinel. A code and its expiry are
    always written together and cleared together; expiry values are epoch
    seconds.

    is_verified only ever moves from False to True.
    """

    name: str
    email: str
    hashed_password: str
    id: int | None = None
    is_verified: bool = False
    verify_otp: str = ""
    verify_otp_expire_at: int = 0
    reset_otp: str = ""
    reset_otp_expire_at: int = 0
    created_at: str | None = None
