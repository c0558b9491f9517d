"""
Status Catalog Service.

Typed, ordered, coloured and activatable status definitions. Package
statuses are matched against this catalog for display only.
"""

import logging
from typing import Optional, List, Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from logitrack.app.core.exceptions import ValidationFailedError, ResourceNotFoundError
from logitrack.app.db.session import commit_or_rollback
from logitrack.app.models.status import Status
from logitrack.app.models.status_enums import StatusEntityType, StatusColor
from logitrack.app.models.package_enums import PackageStatus

logger = logging.getLogger("logitrack.catalog")

DEFAULT_COLOR = StatusColor.GRAY

# Default package catalog installed on an empty database
DEFAULT_PACKAGE_STATUSES = [
    (PackageStatus.PENDING, StatusColor.YELLOW),
    (PackageStatus.PICKED_UP, StatusColor.BLUE),
    (PackageStatus.IN_TRANSIT, StatusColor.INDIGO),
    (PackageStatus.RELAUNCHED, StatusColor.ORANGE),
    (PackageStatus.RELAUNCHED_OTHER_CLIENT, StatusColor.PURPLE),
    (PackageStatus.DELIVERED, StatusColor.GREEN),
    (PackageStatus.RETURNED, StatusColor.RED),
    (PackageStatus.CANCELLED, StatusColor.GRAY),
]


def resolve_color(value: Optional[str]) -> StatusColor:
    """Map a stored colour to the display palette, falling back to gray."""
    if not value:
        return DEFAULT_COLOR
    try:
        return StatusColor(value.strip().lower())
    except ValueError:
        return DEFAULT_COLOR


def _clean_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValidationFailedError("Status name must not be empty", field="name")
    return name.strip()


class StatusCatalog:

    @staticmethod
    async def list(db: AsyncSession, entity_type: StatusEntityType) -> List[Status]:
        """Active statuses of one entity type, in display order."""
        result = await db.execute(
            select(Status)
            .where(Status.entity_type == entity_type, Status.active == True)
            .order_by(Status.display_order.asc(), Status.id.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_all(db: AsyncSession, entity_type: Optional[StatusEntityType] = None) -> List[Status]:
        """Admin view: every status, inactive ones included."""
        query = select(Status).order_by(Status.display_order.asc(), Status.id.asc())
        if entity_type:
            query = query.where(Status.entity_type == entity_type)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get(db: AsyncSession, status_id: int) -> Status:
        status = await db.get(Status, status_id)
        if status is None:
            raise ResourceNotFoundError("Status", status_id)
        return status

    @staticmethod
    async def create(
        db: AsyncSession,
        name: str,
        entity_type: StatusEntityType,
        color: Optional[str] = None,
        display_order: int = 0,
        active: bool = True,
    ) -> Status:
        """Create a catalog entry. Empty names never reach the database."""
        status = Status(
            name=_clean_name(name),
            entity_type=entity_type,
            color=resolve_color(color).value,
            display_order=display_order,
            active=active,
        )
        db.add(status)
        await commit_or_rollback(db)
        await db.refresh(status)
        logger.info("Status created: %s (%s)", status.name, status.entity_type.value)
        return status

    @staticmethod
    async def update(db: AsyncSession, status_id: int, changes: Dict[str, Any]) -> Status:
        status = await StatusCatalog.get(db, status_id)

        if "name" in changes:
            changes["name"] = _clean_name(changes["name"])
        if "color" in changes:
            changes["color"] = resolve_color(changes["color"]).value

        for field, value in changes.items():
            setattr(status, field, value)

        await commit_or_rollback(db)
        await db.refresh(status)
        return status

    @staticmethod
    async def deactivate(db: AsyncSession, status_id: int) -> Status:
        """Hide a status from selection lists; packages keep it as a value."""
        return await StatusCatalog.update(db, status_id, {"active": False})

    @staticmethod
    async def delete(db: AsyncSession, status_id: int) -> None:
        status = await StatusCatalog.get(db, status_id)
        await db.delete(status)
        await commit_or_rollback(db)
        logger.info("Status deleted: %s", status_id)

    @staticmethod
    async def seed_defaults(db: AsyncSession) -> int:
        """Install the default package statuses when none exist yet."""
        existing = await db.execute(
            select(func.count(Status.id)).where(Status.entity_type == StatusEntityType.PACKAGE)
        )
        if existing.scalar():
            return 0

        for order, (name, color) in enumerate(DEFAULT_PACKAGE_STATUSES, start=1):
            db.add(Status(
                name=name,
                color=color.value,
                entity_type=StatusEntityType.PACKAGE,
                display_order=order,
                active=True,
            ))
        await commit_or_rollback(db)
        return len(DEFAULT_PACKAGE_STATUSES)
