"""
Authentication Pydantic schemas.

Credentials are handled by the identity provider; these schemas describe the
bearer token and the caller profile derived from it.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from logitrack.app.models.enums import UserRole


class TokenResponse(BaseModel):
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    role: UserRole = Field(..., description="User role")


class CallerProfileResponse(BaseModel):
    """The authenticated user with what their role allows."""
    user_id: int
    username: str
    display_name: Optional[str] = None
    role: UserRole
    scoped_to_own_packages: bool
    can_assign: bool
    can_manage_catalog: bool
    can_manage_packages: bool
    can_set_relaunch_status: bool
    can_submit_escalation: bool
    filter_keys: List[str]
