"""
LogiTrack repository envelope.

A narrow facade over the services for non-HTTP consumers (view runtime,
scripts). Every call opens its own session and returns a StoreResult instead
of raising: failures land in `error`.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError

from logitrack.app.core import redis_client as redis_client_module
from logitrack.app.core.exceptions import AppException
from logitrack.app.core.roles import Caller
from logitrack.app.db.session import AsyncSessionLocal
from logitrack.app.models.package import Package
from logitrack.app.models.status_enums import StatusEntityType
from logitrack.app.services import reference_data
from logitrack.app.services.badges import BadgeAggregator
from logitrack.app.services.escalation import list_admin_and_manager_users
from logitrack.app.services.notification_service import NotificationService
from logitrack.app.services.package_query import PackageQuery, query_packages
from logitrack.app.services.package_store import PackageStore
from logitrack.app.services.status_catalog import StatusCatalog

logger = logging.getLogger("logitrack.store")


@dataclass
class StoreResult:
    data: Any = None
    error: Optional[str] = None
    count: Optional[int] = None
    total_pages: Optional[int] = None
    has_next_page: Optional[bool] = None
    has_prev_page: Optional[bool] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class LogiTrackStore:

    def __init__(self, session_factory=None, redis=None):
        self.session_factory = session_factory or AsyncSessionLocal
        self.redis = redis

    def _redis(self):
        return self.redis if self.redis is not None else redis_client_module.redis_client

    async def _run(self, operation: str, call, *args, **kwargs) -> StoreResult:
        async with self.session_factory() as db:
            try:
                data = await call(db, *args, **kwargs)
            except AppException as exc:
                logger.info("%s rejected: %s", operation, exc.message)
                return StoreResult(error=exc.message)
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.error("%s failed: %s", operation, exc)
                return StoreResult(error=str(exc))
        if isinstance(data, StoreResult):
            return data
        return StoreResult(data=data)

    # Packages

    async def list_packages(self, query: PackageQuery, caller: Caller) -> StoreResult:
        async def op(db):
            page = await query_packages(db, query, caller)
            return StoreResult(
                data=page.items,
                count=page.total_count,
                total_pages=page.total_pages,
                has_next_page=page.has_next_page,
                has_prev_page=page.has_prev_page,
            )
        return await self._run("list_packages", op)

    async def get_package_by_id(self, package_id: str) -> StoreResult:
        return await self._run("get_package_by_id", PackageStore.get, package_id)

    async def create_package(self, fields: Dict[str, Any], caller: Optional[Caller] = None) -> StoreResult:
        return await self._run("create_package", PackageStore.create, dict(fields), caller)

    async def update_package(self, package_id: str, changes: Dict[str, Any], caller: Optional[Caller] = None) -> StoreResult:
        async def op(db):
            result = await PackageStore.update(db, package_id, dict(changes), caller)
            return result.package
        return await self._run("update_package", op)

    async def delete_package(self, package_id: str) -> StoreResult:
        return await self._run("delete_package", PackageStore.delete, package_id)

    async def count_packages_by_status(
        self,
        status_set: Iterable[str],
        driver_id: Optional[int] = None,
    ) -> StoreResult:
        """
        Per-status counts. With a driver these are badge counts and fall back
        to the last known map when the query fails; fleet-wide counts do not.
        """
        statuses = list(status_set)

        if driver_id is not None:
            aggregator = BadgeAggregator(self._redis())
            return await self._run("count_packages_by_status", aggregator.counts, driver_id, statuses)

        async def op(db):
            result = await db.execute(
                select(Package.status, func.count(Package.id))
                .where(Package.status.in_(statuses))
                .group_by(Package.status)
            )
            counts = {name: 0 for name in statuses}
            counts.update({status: count for status, count in result.all()})
            return counts
        return await self._run("count_packages_by_status", op)

    # Status catalog

    async def list_statuses(self, entity_type: StatusEntityType = StatusEntityType.PACKAGE) -> StoreResult:
        return await self._run("list_statuses", StatusCatalog.list, entity_type)

    async def list_all_statuses(self, entity_type: Optional[StatusEntityType] = None) -> StoreResult:
        return await self._run("list_all_statuses", StatusCatalog.list_all, entity_type)

    async def create_status(self, name: str, entity_type: StatusEntityType, **fields) -> StoreResult:
        return await self._run("create_status", StatusCatalog.create, name, entity_type, **fields)

    async def update_status(self, status_id: int, changes: Dict[str, Any]) -> StoreResult:
        return await self._run("update_status", StatusCatalog.update, status_id, dict(changes))

    async def delete_status(self, status_id: int) -> StoreResult:
        return await self._run("delete_status", StatusCatalog.delete, status_id)

    # Reference data

    async def list_clients(self) -> StoreResult:
        return await self._run("list_clients", reference_data.list_clients)

    async def list_companies(self) -> StoreResult:
        return await self._run("list_companies", reference_data.list_companies)

    async def list_drivers(self) -> StoreResult:
        return await self._run("list_drivers", reference_data.list_drivers)

    async def list_admin_and_manager_users(self) -> StoreResult:
        return await self._run("list_admin_and_manager_users", list_admin_and_manager_users)

    # Notifications

    async def list_notifications(self, user_id: int, unread_only: bool = False) -> StoreResult:
        return await self._run("list_notifications", NotificationService.list_for_user, user_id, unread_only)

    async def create_notification(self, user_id: int, title: str, message: str, **fields) -> StoreResult:
        return await self._run("create_notification", NotificationService.create_notification, user_id, title, message, **fields)

    async def mark_notification_read(self, notification_id: int, user_id: int) -> StoreResult:
        return await self._run("mark_notification_read", NotificationService.mark_read, notification_id, user_id)

    async def mark_all_notifications_read(self, user_id: int) -> StoreResult:
        return await self._run("mark_all_notifications_read", NotificationService.mark_all_read, user_id)

    async def delete_notification(self, notification_id: int, user_id: int) -> StoreResult:
        return await self._run("delete_notification", NotificationService.delete, notification_id, user_id)

    async def unread_count(self, user_id: int) -> StoreResult:
        return await self._run("unread_count", NotificationService.unread_count, user_id)
