"""
Password hashing and the account password policy.
"""

import re

import bcrypt

# Upper, lower, digit and one of @$!%*?&, eight characters or more
PASSWORD_POLICY = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&]).{8,}$")

# bcrypt ignores everything past 72 bytes
BCRYPT_MAX_BYTES = 72


def _bcrypt_input(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Return the bcrypt hash of password as text, ready for the hashed_password column."""
    return bcrypt.hashpw(_bcrypt_input(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Check a login attempt against a stored hash.

    Returns False rather than raising when the stored value is not a bcrypt
    hash.
    """
    try:
        return bcrypt.checkpw(_bcrypt_input(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def meets_password_policy(password: str) -> bool:
    return bool(PASSWORD_POLICY.match(password or ""))
