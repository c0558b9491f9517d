"""
Package Entity Store.

Create, read, update and delete packages. Status changes are validated
against the lifecycle table and written together with their audit entry in
a single transaction.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Any, Optional, FrozenSet

from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.app.core.config import settings
from logitrack.app.core.exceptions import (
    ValidationFailedError,
    ResourceNotFoundError,
    InsufficientPermissionsError,
    IllegalTransitionError,
)
from logitrack.app.core.roles import Caller
from logitrack.app.db.session import commit_or_rollback
from logitrack.app.models.package import Package
from logitrack.app.models.client import Client
from logitrack.app.models.company import Company
from logitrack.app.models.user import User
from logitrack.app.models.enums import UserRole
from logitrack.app.models.package_enums import PackageStatus, RELAUNCH_STATUSES
from logitrack.app.services.audit import record_status_change

logger = logging.getLogger("logitrack.packages")

S = PackageStatus

# current status -> statuses it may move to
TRANSITIONS: Dict[str, FrozenSet[str]] = {
    S.PENDING: frozenset({S.PICKED_UP, S.CANCELLED}),
    S.PICKED_UP: frozenset({S.IN_TRANSIT, S.PENDING, S.CANCELLED}),
    S.IN_TRANSIT: frozenset({
        S.DELIVERED, S.RETURNED, S.CANCELLED, S.RELAUNCHED, S.RELAUNCHED_OTHER_CLIENT,
    }),
    S.RELAUNCHED: frozenset({
        S.IN_TRANSIT, S.DELIVERED, S.RETURNED, S.CANCELLED, S.RELAUNCHED_OTHER_CLIENT,
    }),
    S.RELAUNCHED_OTHER_CLIENT: frozenset({
        S.IN_TRANSIT, S.DELIVERED, S.RETURNED, S.CANCELLED, S.RELAUNCHED,
    }),
    S.DELIVERED: frozenset(),
    S.RETURNED: frozenset(),
    S.CANCELLED: frozenset(),
}

# Fields the back office may edit through a partial update
EDITABLE_FIELDS = frozenset({
    "client_id", "company_id", "status", "price", "fee", "delivery_address", "notes",
})


@dataclass
class StatusChange:
    """Outcome of a status update."""
    package: Package
    changed: bool
    flagged: bool = False
    previous_status: Optional[str] = None


def generate_package_id() -> str:
    """Human readable reference, e.g. COL-2026-004211."""
    year = datetime.now(timezone.utc).year
    return f"COL-{year}-{secrets.randbelow(1_000_000):06d}"


def check_transition(current: str, requested: str, caller: Optional[Caller] = None) -> bool:
    """
    Validate a status jump.

    Returns True when the transition is accepted but flagged (unknown
    status, or an illegal jump while the store runs in "flag" mode).

    Raises:
        InsufficientPermissionsError: relaunch status requested by a role
            without the relaunch capability
        IllegalTransitionError: illegal jump between known statuses in
            "reject" mode
    """
    if requested in RELAUNCH_STATUSES and caller is not None:
        if not caller.profile.can_set_relaunch_status:
            raise InsufficientPermissionsError(
                f"Only drivers can set the status '{requested}'",
                details={"requested_status": requested},
            )

    if current not in TRANSITIONS or requested not in TRANSITIONS:
        logger.warning("Unchecked status transition %r -> %r (status outside lifecycle table)", current, requested)
        return True

    allowed = TRANSITIONS[current]
    if requested in allowed:
        return False

    if settings.status_transition_mode == "flag":
        logger.warning("Illegal status transition %r -> %r accepted in flag mode", current, requested)
        return True

    raise IllegalTransitionError(current, requested, allowed)


class PackageStore:

    @staticmethod
    async def get(db: AsyncSession, package_id: str) -> Package:
        package = await db.get(Package, package_id)
        if package is None:
            raise ResourceNotFoundError("Package", package_id)
        return package

    @staticmethod
    async def _validate_references(db: AsyncSession, fields: Dict[str, Any]) -> None:
        if "client_id" in fields:
            if fields["client_id"] is None:
                raise ValidationFailedError("A client is required", field="client_id")
            if await db.get(Client, fields["client_id"]) is None:
                raise ValidationFailedError(f"Client {fields['client_id']} does not exist", field="client_id")

        if fields.get("company_id") is not None:
            if await db.get(Company, fields["company_id"]) is None:
                raise ValidationFailedError(f"Company {fields['company_id']} does not exist", field="company_id")

        if fields.get("driver_id") is not None:
            driver = await db.get(User, fields["driver_id"])
            if driver is None or driver.role != UserRole.DRIVER:
                raise ValidationFailedError(f"User {fields['driver_id']} is not a driver", field="driver_id")

    @staticmethod
    async def create(db: AsyncSession, fields: Dict[str, Any], caller: Optional[Caller] = None) -> Package:
        """
        Create a package.

        Validates:
        - A client is given and exists (rejected before any write)
        - Company and driver exist when given
        - The reference is not already used

        The initial status is recorded in the audit trail.
        """
        if fields.get("client_id") is None:
            raise ValidationFailedError("A client is required", field="client_id")

        await PackageStore._validate_references(db, fields)

        package_id = fields.get("id") or generate_package_id()
        if await db.get(Package, package_id) is not None:
            raise ValidationFailedError(f"Package with reference '{package_id}' already exists", field="id")

        status = fields.get("status") or PackageStatus.PENDING
        package = Package(
            id=package_id,
            client_id=fields["client_id"],
            company_id=fields.get("company_id"),
            driver_id=fields.get("driver_id"),
            status=status,
            price=fields.get("price") or 0.0,
            fee=fields.get("fee") or 0.0,
            delivery_address=fields.get("delivery_address"),
            notes=fields.get("notes"),
        )
        db.add(package)
        record_status_change(
            db,
            package_id=package_id,
            status=status,
            acting_user_id=caller.user_id if caller else None,
        )
        await commit_or_rollback(db)
        await db.refresh(package)

        logger.info("Package %s created (client=%s, driver=%s)", package.id, package.client_id, package.driver_id)
        return package

    @staticmethod
    def _apply_status(db: AsyncSession, package: Package, new_status: str, caller: Optional[Caller]) -> StatusChange:
        if new_status is None or not new_status.strip():
            raise ValidationFailedError("Status must not be empty", field="status")
        new_status = new_status.strip()

        previous = package.status
        if new_status == previous:
            return StatusChange(package=package, changed=False, previous_status=previous)

        flagged = check_transition(previous, new_status, caller)
        package.status = new_status
        package.updated_at = datetime.now(timezone.utc)
        record_status_change(
            db,
            package_id=package.id,
            status=new_status,
            previous_status=previous,
            acting_user_id=caller.user_id if caller else None,
        )
        return StatusChange(package=package, changed=True, flagged=flagged, previous_status=previous)

    @staticmethod
    async def change_status(
        db: AsyncSession,
        package_id: str,
        new_status: str,
        caller: Optional[Caller] = None,
    ) -> StatusChange:
        """
        Move a package to a new status and append the audit entry.

        Both writes share one commit: a failing audit insert leaves the
        package status untouched.
        """
        package = await PackageStore.get(db, package_id)
        result = PackageStore._apply_status(db, package, new_status, caller)
        if not result.changed:
            return result

        await commit_or_rollback(db)
        await db.refresh(package)
        logger.info(
            "Package %s status %r -> %r by user %s%s",
            package.id, result.previous_status, package.status,
            caller.user_id if caller else None,
            " (flagged)" if result.flagged else "",
        )
        return result

    @staticmethod
    async def update(
        db: AsyncSession,
        package_id: str,
        changes: Dict[str, Any],
        caller: Optional[Caller] = None,
    ) -> StatusChange:
        """
        Partial update of a package.

        A `status` key goes through the same transition check and audit
        write as change_status(), inside the same commit as the other
        fields. Delivered packages keep their other fields editable.
        """
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationFailedError(f"Fields not editable: {', '.join(sorted(unknown))}")

        package = await PackageStore.get(db, package_id)
        await PackageStore._validate_references(db, changes)

        result = StatusChange(package=package, changed=False, previous_status=package.status)
        if "status" in changes:
            result = PackageStore._apply_status(db, package, changes.pop("status"), caller)

        for field, value in changes.items():
            setattr(package, field, value)

        await commit_or_rollback(db)
        await db.refresh(package)
        return result

    @staticmethod
    async def delete(db: AsyncSession, package_id: str) -> None:
        """Hard delete; the package history goes with it."""
        package = await PackageStore.get(db, package_id)
        await db.delete(package)
        await commit_or_rollback(db)
        logger.info("Package %s deleted", package_id)
