"""
Package Query Engine.

Paginated, searchable, sortable and role-scoped package retrieval. The status
predicate from the view filter mapper is turned into SQL and applied before
pagination, so page counts always describe the filtered set.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Union, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, and_

from logitrack.app.core.config import settings
from logitrack.app.core.exceptions import ValidationFailedError
from logitrack.app.core.roles import Caller
from logitrack.app.models.package import Package
from logitrack.app.models.client import Client
from logitrack.app.models.company import Company
from logitrack.app.services.view_filters import (
    StatusPredicate,
    InclusionSet,
    ExclusionSet,
)

UNASSIGNED = "unassigned"

SORT_OPTIONS = ("recent", "oldest", "price_high", "price_low", "status")

LIKE_ESCAPE = "\\"

DATE_FILTERS = (
    "toutes",
    "aujourd_hui",
    "hier",
    "7_derniers_jours",
    "30_derniers_jours",
    "ce_mois",
    "le_mois_dernier",
)


@dataclass
class PackageQuery:
    page: int = 1
    page_size: int = 10
    search_term: Optional[str] = None
    sort_by: str = "recent"
    status_predicate: Optional[StatusPredicate] = None
    # Back office only: a driver id, or "unassigned" for the pool
    driver_id: Optional[Union[int, str]] = None
    date_filter: Optional[str] = None


@dataclass
class Page:
    items: List[Package] = field(default_factory=list)
    total_count: int = 0
    page: int = 1
    page_size: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1


def escape_like(term: str) -> str:
    """Make `%` and `_` in a search term match literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def _start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def date_range(key: Optional[str], now: Optional[datetime] = None) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Creation-date window for a date filter key, as (start, end) with end exclusive."""
    if not key or key == "toutes":
        return None, None
    if key not in DATE_FILTERS:
        raise ValidationFailedError(f"Unknown date filter '{key}'", field="date_filter")

    now = now or datetime.now(timezone.utc)
    today = _start_of_day(now)

    if key == "aujourd_hui":
        return today, None
    if key == "hier":
        return today - timedelta(days=1), today
    if key == "7_derniers_jours":
        return now - timedelta(days=7), None
    if key == "30_derniers_jours":
        return now - timedelta(days=30), None

    month_start = today.replace(day=1)
    if key == "ce_mois":
        return month_start, None
    # le_mois_dernier
    previous_month_start = (month_start - timedelta(days=1)).replace(day=1)
    return previous_month_start, month_start


def predicate_clause(predicate: StatusPredicate, now: Optional[datetime] = None):
    """SQL counterpart of StatusPredicate.matches()."""
    if isinstance(predicate, ExclusionSet):
        clause = Package.status.notin_(predicate.statuses) if predicate.statuses else None
    else:
        clause = Package.status.in_(predicate.statuses)

    if predicate.updated_today:
        today = _start_of_day(now or datetime.now(timezone.utc))
        day_clause = Package.updated_at >= today
        clause = day_clause if clause is None else and_(clause, day_clause)
    return clause


def _order_by(sort_by: str):
    if sort_by == "oldest":
        return [Package.created_at.asc(), Package.id.asc()]
    if sort_by == "price_high":
        return [Package.price.desc(), Package.created_at.desc()]
    if sort_by == "price_low":
        return [Package.price.asc(), Package.created_at.desc()]
    if sort_by == "status":
        return [Package.status.asc(), Package.created_at.desc()]
    return [Package.created_at.desc(), Package.id.desc()]


def _clamp(query: PackageQuery) -> Tuple[int, int]:
    if query.page < 1:
        raise ValidationFailedError("page must be >= 1", field="page")
    if query.page_size < 1:
        raise ValidationFailedError("page_size must be >= 1", field="page_size")
    return query.page, min(query.page_size, settings.max_page_size)


def _filters(query: PackageQuery, caller: Caller, now: Optional[datetime] = None) -> list:
    filters = []
    profile = caller.profile

    # Role scope: drivers only ever see their own packages
    if profile.scoped_to_own_packages:
        filters.append(Package.driver_id == caller.user_id)
    elif query.driver_id is not None and profile.can_filter_by_driver:
        if query.driver_id == UNASSIGNED:
            filters.append(Package.driver_id.is_(None))
        else:
            try:
                filters.append(Package.driver_id == int(query.driver_id))
            except (TypeError, ValueError):
                raise ValidationFailedError(f"Invalid driver filter '{query.driver_id}'", field="driver_id")

    if query.status_predicate is not None:
        clause = predicate_clause(query.status_predicate, now)
        if clause is not None:
            filters.append(clause)

    if query.search_term and query.search_term.strip():
        pattern = f"%{escape_like(query.search_term.strip())}%"
        filters.append(or_(
            Package.id.ilike(pattern, escape=LIKE_ESCAPE),
            Client.name.ilike(pattern, escape=LIKE_ESCAPE),
            Company.name.ilike(pattern, escape=LIKE_ESCAPE),
        ))

    start, end = date_range(query.date_filter, now)
    if start is not None:
        filters.append(Package.created_at >= start)
    if end is not None:
        filters.append(Package.created_at < end)

    return filters


async def query_packages(
    db: AsyncSession,
    query: PackageQuery,
    caller: Caller,
    now: Optional[datetime] = None,
) -> Page:
    """
    Run a package query on behalf of a caller.

    Total count and items share the same filter set; items are a window of
    the ordered, filtered rows.
    """
    page, page_size = _clamp(query)
    if query.sort_by not in SORT_OPTIONS:
        raise ValidationFailedError(f"Unknown sort option '{query.sort_by}'", field="sort_by")

    filters = _filters(query, caller, now)

    base = (
        select(Package)
        .join(Client, Package.client_id == Client.id)
        .outerjoin(Company, Package.company_id == Company.id)
        .where(*filters)
    )

    count_result = await db.execute(select(func.count()).select_from(base.subquery()))
    total = count_result.scalar() or 0

    result = await db.execute(
        base.order_by(*_order_by(query.sort_by))
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    items = list(result.scalars().all())

    return Page(items=items, total_count=total, page=page, page_size=page_size)
