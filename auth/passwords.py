"""
auth/passwords.py -- bcrypt password hashing.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

The cost factor defaults to 10 rounds and is taken from Settings.bcrypt_rounds
by the service. Plaintext is never logged or returned.
"""

from __future__ import annotations

import bcrypt

DEFAULT_ROUNDS = 10


def hash_password(plain: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    Passwords longer than 72 bytes are truncated by bcrypt. The API layer caps
    password fields at 72 characters (Pydantic max_length), which keeps ASCII
    input under the threshold.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    bcrypt.checkpw compares in constant time. A malformed or empty digest
    returns False rather than raising.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# Timing equalization dummy hash. Computed once at module load so a login for
# an unknown email still pays for one bcrypt verification and takes as long
# as a wrong-password login.
_DUMMY_HASH: str = hash_password("authapi_timing_dummy")


def burn_verification(plain: str) -> None:
    """Run one bcrypt check against the dummy hash and discard the result."""
    verify_password(plain, _DUMMY_HASH)
