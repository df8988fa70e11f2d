"""
JWT access token helpers.
"""

from datetime import timedelta
from typing import Any, Dict, Optional

import jwt

from county_portal.core.config import settings
from county_portal.utils.time import utc_now


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    secret_key: Optional[str] = None,
) -> str:
    """Sign data into a bearer token that expires after ACCESS_TOKEN_EXPIRE_HOURS."""
    to_encode = dict(data)
    expire = utc_now() + (expires_delta or timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS))
    to_encode["exp"] = expire
    return jwt.encode(to_encode, secret_key or settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, secret_key: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Return the token payload, or None when the token is invalid or expired."""
    try:
        return jwt.decode(token, secret_key or settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        return None
