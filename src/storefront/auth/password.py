"""Password hashing utilities.

Learn: Uses bcrypt for password hashing. bcrypt salts automatically
and its work factor makes brute force expensive. Rounds are
configurable so tests can hash with a cheap factor.
"""

import bcrypt


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt. Input is truncated to bcrypt's 72-byte limit."""
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        pw_bytes = password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False
