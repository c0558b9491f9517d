"""
Bearer token utilities.

Sign-in lives in the external identity provider. Tokens only carry the
caller's id and username; the role is always re-read from the users table.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from logitrack.app.core.config import settings


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign `data` with an expiry claim.

    Example payload:
        {"sub": "livreur1", "user_id": 3, "exp": 1767225600}
    """
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {**data, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)


def token_for_user(user_id: int, username: str, expires_delta: Optional[timedelta] = None) -> str:
    """Token identifying one user of the users table."""
    return create_access_token({"sub": username, "user_id": user_id}, expires_delta)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Claims of a valid, unexpired token; None otherwise."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
