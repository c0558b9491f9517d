"""
Badge Aggregator.

Per-driver counts of packages in the attention statuses (relaunched ones by
default). The last successful map is kept in Redis and in process memory so
a failed count query still returns the previous numbers.
"""

import json
import logging
from typing import Dict, Iterable, Optional

from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError

from logitrack.app.core.config import settings
from logitrack.app.models.package import Package

logger = logging.getLogger("logitrack.badges")

# Last known counts per driver, used when Redis is down as well
_last_known: Dict[int, Dict[str, int]] = {}


def cache_key(driver_id: int) -> str:
    return f"badges:driver:{driver_id}"


def attention_statuses() -> tuple:
    return tuple(settings.badge_attention_statuses)


class BadgeAggregator:

    def __init__(self, redis=None):
        self.redis = redis

    async def _load_cached(self, driver_id: int) -> Optional[Dict[str, int]]:
        if self.redis is not None:
            try:
                raw = await self.redis.get(cache_key(driver_id))
                if raw:
                    return json.loads(raw)
            except (RedisError, OSError, ValueError) as exc:
                logger.warning("Badge cache read failed for driver %s: %s", driver_id, exc)
        return _last_known.get(driver_id)

    async def _store(self, driver_id: int, counts: Dict[str, int]) -> None:
        _last_known[driver_id] = dict(counts)
        if self.redis is None:
            return
        try:
            await self.redis.set(cache_key(driver_id), json.dumps(counts), ex=settings.badge_cache_ttl_seconds)
        except (RedisError, OSError) as exc:
            logger.warning("Badge cache write failed for driver %s: %s", driver_id, exc)

    async def counts(
        self,
        db: AsyncSession,
        driver_id: int,
        status_set: Optional[Iterable[str]] = None,
    ) -> Dict[str, int]:
        """
        Count the driver's packages per status in status_set.

        Every requested status is present in the result, zero when the
        driver has none. Never raises on store failure: the previous map (or
        a zero map on first load) is returned instead.
        """
        statuses = list(dict.fromkeys(status_set if status_set is not None else attention_statuses()))
        zero = {name: 0 for name in statuses}
        if not statuses:
            return zero

        try:
            result = await db.execute(
                select(Package.status, func.count(Package.id))
                .where(Package.driver_id == driver_id, Package.status.in_(statuses))
                .group_by(Package.status)
            )
            counts = dict(zero)
            for status, count in result.all():
                counts[status] = count
        except SQLAlchemyError as exc:
            logger.error("Badge count query failed for driver %s: %s", driver_id, exc)
            cached = await self._load_cached(driver_id)
            if cached is None:
                return zero
            return {name: int(cached.get(name, 0)) for name in statuses}

        await self._store(driver_id, counts)
        return counts


def reset_last_known() -> None:
    _last_known.clear()
