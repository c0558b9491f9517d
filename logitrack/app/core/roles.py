"""
Role capability profiles.

Every role-dependent decision (query scope, driver filter, assignment,
catalog management, relaunch statuses, escalations) reads one of these
profiles instead of comparing role strings at the call site.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet

from logitrack.app.models.enums import UserRole


# Dashboard / sidebar filter keys shown to each side of the application
BACK_OFFICE_FILTER_KEYS = frozenset({"en_attente", "en_traitement", "livres", "retournes"})
DRIVER_FILTER_KEYS = frozenset({"a_livrer_aujourdhui", "en_cours", "livres_aujourdhui", "retournes_livreur"})


@dataclass(frozen=True)
class RoleProfile:
    """What a role is allowed to see and do."""
    role: UserRole
    scoped_to_own_packages: bool
    can_filter_by_driver: bool
    can_assign: bool
    can_manage_catalog: bool
    can_manage_packages: bool
    can_set_relaunch_status: bool
    can_submit_escalation: bool
    receives_escalations: bool
    filter_keys: FrozenSet[str]


ROLE_PROFILES: Dict[UserRole, RoleProfile] = {
    UserRole.ADMIN: RoleProfile(
        role=UserRole.ADMIN,
        scoped_to_own_packages=False,
        can_filter_by_driver=True,
        can_assign=True,
        can_manage_catalog=True,
        can_manage_packages=True,
        can_set_relaunch_status=False,
        can_submit_escalation=False,
        receives_escalations=True,
        filter_keys=BACK_OFFICE_FILTER_KEYS,
    ),
    UserRole.MANAGER: RoleProfile(
        role=UserRole.MANAGER,
        scoped_to_own_packages=False,
        can_filter_by_driver=True,
        can_assign=True,
        can_manage_catalog=False,
        can_manage_packages=True,
        can_set_relaunch_status=False,
        can_submit_escalation=False,
        receives_escalations=True,
        filter_keys=BACK_OFFICE_FILTER_KEYS,
    ),
    UserRole.DRIVER: RoleProfile(
        role=UserRole.DRIVER,
        scoped_to_own_packages=True,
        can_filter_by_driver=False,
        can_assign=False,
        can_manage_catalog=False,
        can_manage_packages=False,
        can_set_relaunch_status=True,
        can_submit_escalation=True,
        receives_escalations=False,
        filter_keys=DRIVER_FILTER_KEYS,
    ),
}


def escalation_recipient_roles() -> FrozenSet[UserRole]:
    return frozenset(role for role, profile in ROLE_PROFILES.items() if profile.receives_escalations)


@dataclass(frozen=True)
class Caller:
    """Authenticated caller as seen by the services."""
    user_id: int
    role: UserRole
    username: str = ""

    @property
    def profile(self) -> RoleProfile:
        return ROLE_PROFILES[self.role]

    @classmethod
    def from_token(cls, payload: dict) -> "Caller":
        return cls(
            user_id=payload["user_id"],
            role=UserRole(payload["role"]),
            username=payload.get("sub", ""),
        )
