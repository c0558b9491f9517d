"""
Live view models: notification feed, badge panel and package search.

Each widget talks to the LogiTrackStore envelope and runs its timers inside
a ViewScope, so closing the view stops polling and drops late results.
"""

import logging
from typing import Dict, Iterable, List, Optional

from logitrack.app.core.config import settings
from logitrack.app.core.roles import Caller
from logitrack.app.realtime.tasks import ViewScope, PeriodicTask, Debouncer
from logitrack.app.services.package_query import PackageQuery
from logitrack.app.services.store import LogiTrackStore
from logitrack.app.services import view_filters

logger = logging.getLogger("logitrack.realtime")


class NotificationFeed:
    """Polled list of the caller's notifications with a local unread counter."""

    def __init__(self, store: LogiTrackStore, user_id: int, scope: ViewScope, interval: Optional[float] = None):
        self.store = store
        self.user_id = user_id
        self.scope = scope
        self.interval = interval or settings.notification_poll_seconds
        self.items: List = []
        self.unread_count = 0
        self.error: Optional[str] = None
        self._task: Optional[PeriodicTask] = None

    def start(self) -> None:
        self._task = self.scope.every(self.interval, self.refresh, name=f"notifications:{self.user_id}")

    async def refresh(self) -> None:
        token = self.scope.token()
        listing = await self.store.list_notifications(self.user_id)
        unread = await self.store.unread_count(self.user_id)
        if not self.scope.is_current(token):
            return
        if not listing.ok or not unread.ok:
            self.error = listing.error or unread.error
            return
        self.error = None
        self.items = listing.data
        self.unread_count = unread.data

    async def mark_read(self, notification_id: int) -> bool:
        result = await self.store.mark_notification_read(notification_id, self.user_id)
        if not (result.ok and result.data):
            return False
        newly_read = [item for item in self.items if item.id == notification_id and not item.is_read]
        for item in newly_read:
            item.is_read = True
        if newly_read:
            self.unread_count = max(0, self.unread_count - 1)
        return True

    async def mark_all_read(self) -> None:
        result = await self.store.mark_all_notifications_read(self.user_id)
        if result.ok:
            for item in self.items:
                item.is_read = True
            self.unread_count = 0

    async def dismiss(self, notification_id: int) -> bool:
        """Best-effort delete: the item is hidden locally even if the store refuses."""
        removed = [item for item in self.items if item.id == notification_id]
        self.items = [item for item in self.items if item.id != notification_id]
        if any(not item.is_read for item in removed):
            self.unread_count = max(0, self.unread_count - 1)

        result = await self.store.delete_notification(notification_id, self.user_id)
        if not result.ok:
            logger.warning("Dismissed notification %s not deleted: %s", notification_id, result.error)
        return result.ok


class BadgePanel:
    """Driver badge counts, refreshed on a timer; keeps the last map on failure."""

    def __init__(
        self,
        store: LogiTrackStore,
        driver_id: int,
        scope: ViewScope,
        statuses: Optional[Iterable[str]] = None,
        interval: Optional[float] = None,
    ):
        self.store = store
        self.driver_id = driver_id
        self.scope = scope
        self.statuses = list(statuses if statuses is not None else settings.badge_attention_statuses)
        self.interval = interval or settings.badge_poll_seconds
        self.counts: Dict[str, int] = {name: 0 for name in self.statuses}

    def start(self) -> None:
        self.scope.every(self.interval, self.refresh, name=f"badges:{self.driver_id}")

    async def refresh(self) -> None:
        token = self.scope.token()
        result = await self.store.count_packages_by_status(self.statuses, driver_id=self.driver_id)
        if not self.scope.is_current(token):
            return
        if not result.ok:
            logger.warning("Badge refresh failed for driver %s, keeping last counts", self.driver_id)
            return
        self.counts = result.data

    @property
    def total(self) -> int:
        return sum(self.counts.values())


class PackageSearchView:
    """
    Package list with debounced search.

    Keystrokes reset the debounce timer; one query runs for the last term.
    Responses to superseded requests are ignored.
    """

    def __init__(
        self,
        store: LogiTrackStore,
        caller: Caller,
        scope: ViewScope,
        filter_key: Optional[str] = None,
        page_size: Optional[int] = None,
        delay_ms: Optional[int] = None,
    ):
        self.store = store
        self.caller = caller
        self.scope = scope
        self.filter_key = filter_key
        self.page_size = page_size or settings.default_page_size
        delay = (delay_ms if delay_ms is not None else settings.search_debounce_ms) / 1000
        self._debouncer: Debouncer = scope.debounce(delay, self.load)
        self.search_term = ""
        self.page = 1
        self.items: List = []
        self.total_count = 0
        self.total_pages = 0
        self.error: Optional[str] = None
        self.queries_issued = 0
        self._latest_request = 0

    @property
    def title(self) -> str:
        return view_filters.page_title(self.filter_key) if self.filter_key else "Colis"

    def type(self, term: str) -> None:
        self.search_term = term
        self.page = 1
        self._debouncer.call()

    async def settle(self) -> None:
        await self._debouncer.flush()

    async def go_to(self, page: int) -> None:
        self.page = page
        await self.load()

    async def load(self) -> None:
        self._latest_request += 1
        request_id = self._latest_request
        token = self.scope.token()

        query = PackageQuery(
            page=self.page,
            page_size=self.page_size,
            search_term=self.search_term or None,
            status_predicate=view_filters.resolve(self.filter_key) if self.filter_key else None,
        )
        self.queries_issued += 1
        result = await self.store.list_packages(query, self.caller)

        if request_id != self._latest_request or not self.scope.is_current(token):
            return
        if not result.ok:
            self.error = result.error
            return
        self.error = None
        self.items = result.data
        self.total_count = result.count
        self.total_pages = result.total_pages
