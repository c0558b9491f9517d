"""
Security guards for role-based and ownership-based access control.

Provides dependencies for protecting endpoints.
"""

from typing import List
from fastapi import Depends, HTTPException, status
from logitrack.app.models.enums import UserRole
from logitrack.app.core.dependencies import get_current_user
from logitrack.app.core.roles import Caller, ROLE_PROFILES


def _caller_from(current_user: dict) -> Caller:
    user_role_str = current_user.get("role")

    if not user_role_str:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Role information missing from token"
        )

    try:
        return Caller.from_token(current_user)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid role in token"
        )


async def get_caller(current_user: dict = Depends(get_current_user)) -> Caller:
    """Dependency returning the authenticated caller with its role profile."""
    return _caller_from(current_user)


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/packages/unassigned")
        async def list_pool(caller: Caller = Depends(require_role([UserRole.ADMIN, UserRole.MANAGER]))):
            ...

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> Caller:
        caller = _caller_from(current_user)

        if caller.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return caller

    return role_checker


def require_capability(capability: str):
    """
    Dependency factory checking a flag of the caller's role profile.

    Usage:
        caller: Caller = Depends(require_capability("can_assign"))
    """
    allowed = [role for role, profile in ROLE_PROFILES.items() if getattr(profile, capability)]
    return require_role(allowed)


class PackageAccessGuard:
    """
    Ownership guard for packages.

    Back-office roles see every package; drivers only the packages assigned
    to them.
    """

    def can_access(self, package, caller: Caller) -> bool:
        if not caller.profile.scoped_to_own_packages:
            return True
        return package.driver_id == caller.user_id

    def enforce(self, package, caller: Caller):
        """
        Raise 403 if the caller may not see the package.

        Raises:
            HTTPException 403 if ownership check fails
        """
        if not self.can_access(package, caller):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied. This package is not assigned to you."
            )
