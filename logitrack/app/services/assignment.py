"""
Assignment pool service.

Packages with no driver form the unassigned pool. Assignment is a
conditional update so two concurrent assignments of the same package cannot
both succeed: the loser gets an AssignmentConflictError.
"""

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from logitrack.app.core.exceptions import (
    ValidationFailedError,
    ResourceNotFoundError,
    AssignmentConflictError,
)
from logitrack.app.db.session import commit_or_rollback
from logitrack.app.models.package import Package
from logitrack.app.models.user import User
from logitrack.app.models.enums import UserRole

logger = logging.getLogger("logitrack.assignment")


async def list_unassigned(db: AsyncSession, limit: int = 50) -> List[Package]:
    """Pool packages, newest first."""
    result = await db.execute(
        select(Package)
        .where(Package.driver_id.is_(None))
        .order_by(Package.created_at.desc(), Package.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def _validate_driver(db: AsyncSession, driver_id: int) -> User:
    driver = await db.get(User, driver_id)
    if driver is None:
        raise ResourceNotFoundError("Driver", driver_id)
    if driver.role != UserRole.DRIVER:
        raise ValidationFailedError(f"User {driver_id} is not a driver", field="driver_id")
    if not driver.is_active:
        raise ValidationFailedError(f"Driver {driver_id} is not active", field="driver_id")
    return driver


async def assign(db: AsyncSession, package_id: str, driver_id: int) -> Package:
    """
    Take a package out of the pool and give it to a driver.

    Status is left untouched and no audit entry is written.

    Raises:
        ResourceNotFoundError: unknown package or driver
        ValidationFailedError: target user is not an active driver
        AssignmentConflictError: the package already has a driver
    """
    await _validate_driver(db, driver_id)

    result = await db.execute(
        update(Package)
        .where(Package.id == package_id, Package.driver_id.is_(None))
        .values(driver_id=driver_id, updated_at=datetime.now(timezone.utc))
        .execution_options(synchronize_session=False)
    )

    if result.rowcount == 0:
        await db.rollback()
        package = await db.get(Package, package_id)
        if package is None:
            raise ResourceNotFoundError("Package", package_id)
        logger.warning(
            "Assignment conflict on package %s: wanted driver %s, already held by %s",
            package_id, driver_id, package.driver_id,
        )
        raise AssignmentConflictError(package_id, package.driver_id)

    await commit_or_rollback(db)

    package = await db.get(Package, package_id, populate_existing=True)
    logger.info("Package %s assigned to driver %s", package_id, driver_id)
    return package


async def unassign(db: AsyncSession, package_id: str) -> Package:
    """Return a package to the pool."""
    package = await db.get(Package, package_id)
    if package is None:
        raise ResourceNotFoundError("Package", package_id)

    previous_driver = package.driver_id
    package.driver_id = None
    package.updated_at = datetime.now(timezone.utc)
    await commit_or_rollback(db)
    await db.refresh(package)

    logger.info("Package %s returned to the pool (was driver %s)", package_id, previous_driver)
    return package
