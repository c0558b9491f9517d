"""
Package audit trail service.

Every package status change appends one history row. The row is added to
the caller's session so it commits together with the status update.
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from logitrack.app.models.package_history import PackageHistory


def record_status_change(
    db: AsyncSession,
    package_id: str,
    status: str,
    previous_status: Optional[str] = None,
    acting_user_id: Optional[int] = None,
) -> PackageHistory:
    """
    Stage an audit entry for a status change.

    Nothing is flushed here: the entry is written by the same commit as the
    package update, so either both persist or neither does.

    Args:
        db: Database session carrying the package update
        package_id: Package whose status changed
        status: New status
        previous_status: Status before the change
        acting_user_id: User performing the change

    Returns:
        Pending PackageHistory instance
    """
    entry = PackageHistory(
        package_id=package_id,
        status=status,
        previous_status=previous_status,
        acting_user_id=acting_user_id,
    )
    db.add(entry)
    return entry


async def get_package_history(
    db: AsyncSession,
    package_id: str,
    limit: int = 100
) -> list[PackageHistory]:
    """
    Retrieve the audit trail of a package, oldest first.

    Args:
        db: Database session
        package_id: Package reference
        limit: Maximum number of records to return
    """
    query = (
        select(PackageHistory)
        .where(PackageHistory.package_id == package_id)
        .order_by(PackageHistory.timestamp, PackageHistory.id)
        .limit(limit)
    )
    result = await db.execute(query)
    return list(result.scalars().all())
