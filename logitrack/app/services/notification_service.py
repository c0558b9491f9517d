"""
Notification Service.

Handles creation and read state of in-app notifications.
"""

import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime, timezone
from typing import Optional, List

from logitrack.app.core.exceptions import ResourceNotFoundError, StoreUnavailableError
from logitrack.app.db.session import commit_or_rollback
from logitrack.app.models.notification import Notification, NotificationType

logger = logging.getLogger("logitrack.notifications")


class NotificationService:

    @staticmethod
    def build(
        user_id: int,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        package_id: Optional[str] = None,
    ) -> Notification:
        return Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            package_id=package_id,
            is_read=False,
        )

    @staticmethod
    async def create_notification(
        db: AsyncSession,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        package_id: Optional[str] = None,
    ) -> Notification:
        """Create and commit a single notification."""
        notif = NotificationService.build(user_id, title, message, type, package_id)
        db.add(notif)
        await commit_or_rollback(db)
        await db.refresh(notif)
        return notif

    @staticmethod
    async def list_for_user(
        db: AsyncSession,
        user_id: int,
        unread_only: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> List[Notification]:
        """Newest first."""
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read == False)
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(offset).limit(limit)

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def unread_count(db: AsyncSession, user_id: int) -> int:
        result = await db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read == False
            )
        )
        return result.scalar() or 0

    @staticmethod
    async def _set_read(db: AsyncSession, *criteria) -> int:
        result = await db.execute(
            update(Notification)
            .where(Notification.is_read == False, *criteria)
            .values(is_read=True, read_at=datetime.now(timezone.utc))
        )
        await commit_or_rollback(db)
        return result.rowcount

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: int, user_id: int) -> bool:
        """
        Mark one of the user's notifications as read.

        Returns False when the notification is not the user's. Marking an
        already read notification again succeeds without touching read_at.
        """
        changed = await NotificationService._set_read(
            db, Notification.id == notification_id, Notification.user_id == user_id
        )
        if changed:
            return True
        owned = await db.execute(
            select(Notification.id).where(Notification.id == notification_id, Notification.user_id == user_id)
        )
        return owned.scalar_one_or_none() is not None

    @staticmethod
    async def mark_all_read(db: AsyncSession, user_id: int) -> int:
        """Batch update; returns how many notifications changed."""
        return await NotificationService._set_read(db, Notification.user_id == user_id)

    @staticmethod
    async def delete(db: AsyncSession, notification_id: int, user_id: int) -> None:
        """
        Delete one of the user's notifications.

        Raises:
            ResourceNotFoundError: no such notification for this user
        """
        result = await db.execute(
            delete(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id
            )
        )
        if result.rowcount == 0:
            await db.rollback()
            raise ResourceNotFoundError("Notification", notification_id)
        await commit_or_rollback(db)

    @staticmethod
    async def best_effort_delete(db: AsyncSession, notification_id: int, user_id: int) -> bool:
        """
        Delete a notification without ever raising.

        Failures are logged and reported as False; the caller keeps the item
        hidden either way.
        """
        try:
            await NotificationService.delete(db, notification_id, user_id)
            return True
        except ResourceNotFoundError:
            logger.info("Notification %s already gone for user %s", notification_id, user_id)
            return False
        except (SQLAlchemyError, StoreUnavailableError) as exc:
            logger.warning("Best-effort delete of notification %s failed: %s", notification_id, exc)
            return False
