"""
Authentication API endpoints.

Identity is established upstream; this service only reads the bearer token.
"""

from fastapi import APIRouter, Depends

from logitrack.app.core.dependencies import get_current_user
from logitrack.app.core.guards import get_caller
from logitrack.app.core.roles import Caller
from logitrack.app.schemas.auth import CallerProfileResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me", response_model=CallerProfileResponse)
async def get_me(
    caller: Caller = Depends(get_caller),
    current_user: dict = Depends(get_current_user),
):
    """
    Get the current caller and its role profile.

    The view layer uses this to decide which filters and actions to show.
    """
    profile = caller.profile
    return CallerProfileResponse(
        user_id=caller.user_id,
        username=caller.username,
        display_name=current_user.get("display_name"),
        role=caller.role,
        scoped_to_own_packages=profile.scoped_to_own_packages,
        can_assign=profile.can_assign,
        can_manage_catalog=profile.can_manage_catalog,
        can_manage_packages=profile.can_manage_packages,
        can_set_relaunch_status=profile.can_set_relaunch_status,
        can_submit_escalation=profile.can_submit_escalation,
        filter_keys=sorted(profile.filter_keys),
    )
