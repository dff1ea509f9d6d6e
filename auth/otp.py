"""
auth/otp.py -- One-time passcode generation and expiry policy.

Codes are six decimal digits drawn uniformly from 100000..999999 with the
secrets CSPRNG, so a code never has a leading zero and always has length 6.

How long a code lives is policy, not generator behavior: the service stamps
the expiry using the TTL that fits the flow.
"""

from __future__ import annotations

import secrets

OTP_MIN = 100000
OTP_MAX = 999999

VERIFY_OTP_TTL_SECONDS = 24 * 60 * 60
RESET_OTP_TTL_SECONDS = 15 * 60


def generate_otp() -> str:
    """Return a random 6-digit numeric code as a string."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def expires_at(ttl_seconds: int, now: float) -> int:
    """Return the epoch-second expiry for a code issued at `now`."""
    return int(now) + ttl_seconds


def is_expired(expire_at: int, now: float) -> bool:
    """A code is expired once `now` is strictly past its expiry."""
    return now > expire_at
