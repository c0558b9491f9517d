"""
Bearer token authentication.

The token proves who the caller is; what they may do is read from the users
table on every request, so a deactivated or demoted user loses access before
their token expires.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from logitrack.app.core.exceptions import AuthenticationError
from logitrack.app.core.jwt import decode_access_token
from logitrack.app.db.session import get_db
from logitrack.app.models.user import User

bearer_scheme = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Resolve the bearer token to the claims of an active user.

    Returns:
        Token claims with `role`, `sub` and `display_name` taken from the
        database

    Raises:
        AuthenticationError: invalid or expired token, unknown user
        HTTPException 403: inactive user
    """
    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise AuthenticationError("Could not validate credentials")

    user_id = claims.get("user_id")
    if not user_id:
        raise AuthenticationError("Token carries no user id")

    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is inactive",
        )

    claims["role"] = user.role.value
    claims["sub"] = user.username
    claims["display_name"] = user.display_name
    return claims
