"""
Tests for the package query engine.

Pagination arithmetic, role scoping, search, sorting and status predicates
applied before pagination.
"""

import math
from datetime import datetime, timedelta, timezone

import pytest

from logitrack.app.core.exceptions import ValidationFailedError
from logitrack.app.models.package_enums import PackageStatus as S
from logitrack.app.services import view_filters
from logitrack.app.services.package_query import PackageQuery, query_packages, date_range, escape_like, UNASSIGNED
from logitrack.tests.factories import caller_for, make_package


@pytest.fixture
async def mixed_packages(db_session, client_row, company_row, driver, driver2):
    """
    13 packages:
    - driver: 7 (statuses cycle through the lifecycle)
    - driver2: 3
    - pool: 3
    """
    statuses = [S.PENDING, S.PICKED_UP, S.IN_TRANSIT, S.DELIVERED, S.RETURNED, S.CANCELLED, S.RELAUNCHED]
    for i, status in enumerate(statuses):
        await make_package(db_session, f"COL-2026-1000{i}", client_row, status=status, driver=driver,
                           price=10 * (i + 1), created_offset=i)
    for i in range(3):
        await make_package(db_session, f"COL-2026-2000{i}", client_row, status=S.IN_TRANSIT, driver=driver2,
                           company=company_row, price=5, created_offset=10 + i)
    for i in range(3):
        await make_package(db_session, f"COL-2026-3000{i}", client_row, created_offset=20 + i)


@pytest.mark.asyncio
@pytest.mark.parametrize("page_size", [1, 2, 4, 5, 13, 50])
async def test_pages_cover_filtered_set_exactly_once(db_session, admin, mixed_packages, page_size):
    caller = caller_for(admin)
    first = await query_packages(db_session, PackageQuery(page=1, page_size=page_size), caller)

    assert first.total_count == 13
    assert first.total_pages == math.ceil(13 / page_size)

    seen = []
    for page in range(1, first.total_pages + 1):
        result = await query_packages(db_session, PackageQuery(page=page, page_size=page_size), caller)
        assert result.has_prev_page == (page > 1)
        assert result.has_next_page == (page < result.total_pages)
        seen.extend(p.id for p in result.items)

    assert len(seen) == 13
    assert len(set(seen)) == 13


@pytest.mark.asyncio
async def test_predicate_applied_before_pagination(db_session, admin, mixed_packages):
    """en_traitement excludes pending / delivered / returned across the whole set, not per page."""
    predicate = view_filters.resolve("en_traitement")
    caller = caller_for(admin)

    seen = []
    page = 1
    while True:
        result = await query_packages(
            db_session, PackageQuery(page=page, page_size=2, status_predicate=predicate), caller
        )
        seen.extend(result.items)
        if not result.has_next_page:
            break
        page += 1

    # picked up, in transit, cancelled, relaunched from driver + 3 in transit from driver2
    assert result.total_count == 7
    assert len(seen) == 7
    assert all(p.status not in (S.PENDING, S.DELIVERED, S.RETURNED) for p in seen)


@pytest.mark.asyncio
async def test_unknown_filter_key_returns_nothing(db_session, admin, mixed_packages):
    result = await query_packages(
        db_session, PackageQuery(status_predicate=view_filters.resolve("n_importe_quoi")), caller_for(admin)
    )
    assert result.total_count == 0
    assert result.items == []
    assert result.total_pages == 0
    assert not result.has_next_page


@pytest.mark.asyncio
async def test_driver_sees_only_own_packages(db_session, driver, driver2, mixed_packages):
    result = await query_packages(db_session, PackageQuery(page_size=50), caller_for(driver))
    assert result.total_count == 7
    assert all(p.driver_id == driver.id for p in result.items)


@pytest.mark.asyncio
async def test_driver_filter_parameter_ignored_for_drivers(db_session, driver, driver2, mixed_packages):
    for requested in (driver2.id, UNASSIGNED):
        result = await query_packages(
            db_session, PackageQuery(page_size=50, driver_id=requested), caller_for(driver)
        )
        assert result.total_count == 7
        assert all(p.driver_id == driver.id for p in result.items)


@pytest.mark.asyncio
async def test_back_office_driver_and_pool_filters(db_session, manager, driver2, mixed_packages):
    caller = caller_for(manager)

    by_driver = await query_packages(db_session, PackageQuery(page_size=50, driver_id=str(driver2.id)), caller)
    assert by_driver.total_count == 3

    pool = await query_packages(db_session, PackageQuery(page_size=50, driver_id=UNASSIGNED), caller)
    assert pool.total_count == 3
    assert all(p.driver_id is None for p in pool.items)


@pytest.mark.asyncio
async def test_search_matches_reference_client_and_company(db_session, admin, mixed_packages, client_row):
    caller = caller_for(admin)

    by_ref = await query_packages(db_session, PackageQuery(search_term="2026-3000"), caller)
    assert by_ref.total_count == 3

    by_client = await query_packages(db_session, PackageQuery(search_term="atlas", page_size=50), caller)
    assert by_client.total_count == 13

    by_company = await query_packages(db_session, PackageQuery(search_term="EXPRESS"), caller)
    assert by_company.total_count == 3


def test_escape_like_makes_wildcards_literal():
    assert escape_like("50%_off") == "50\\%\\_off"
    assert escape_like("a\\b") == "a\\\\b"


@pytest.mark.asyncio
async def test_wildcards_in_search_match_literally(db_session, admin, client_row):
    await make_package(db_session, "COL-2026-000001", client_row)
    await make_package(db_session, "COL-2026-000002", client_row, created_offset=1)
    await make_package(db_session, "PROMO_50%", client_row, created_offset=2)
    caller = caller_for(admin)

    percent = await query_packages(db_session, PackageQuery(search_term="%"), caller)
    assert [p.id for p in percent.items] == ["PROMO_50%"]

    underscore = await query_packages(db_session, PackageQuery(search_term="O_5"), caller)
    assert [p.id for p in underscore.items] == ["PROMO_50%"]

    single = await query_packages(db_session, PackageQuery(search_term="COL_2026"), caller)
    assert single.total_count == 0


@pytest.mark.asyncio
async def test_search_and_filter_combine(db_session, admin, mixed_packages):
    result = await query_packages(
        db_session,
        PackageQuery(search_term="express", status_predicate=view_filters.resolve("en_attente")),
        caller_for(admin),
    )
    assert result.total_count == 0


@pytest.mark.asyncio
async def test_sort_orders(db_session, driver, mixed_packages):
    caller = caller_for(driver)

    recent = await query_packages(db_session, PackageQuery(page_size=3), caller)
    assert [p.id for p in recent.items] == ["COL-2026-10006", "COL-2026-10005", "COL-2026-10004"]

    oldest = await query_packages(db_session, PackageQuery(page_size=1, sort_by="oldest"), caller)
    assert oldest.items[0].id == "COL-2026-10000"

    high = await query_packages(db_session, PackageQuery(page_size=1, sort_by="price_high"), caller)
    assert high.items[0].price == 70

    low = await query_packages(db_session, PackageQuery(page_size=1, sort_by="price_low"), caller)
    assert low.items[0].price == 10

    by_status = await query_packages(db_session, PackageQuery(page_size=50, sort_by="status"), caller)
    statuses = [p.status for p in by_status.items]
    assert statuses == sorted(statuses)


@pytest.mark.asyncio
async def test_unknown_sort_rejected(db_session, admin):
    with pytest.raises(ValidationFailedError):
        await query_packages(db_session, PackageQuery(sort_by="random"), caller_for(admin))


@pytest.mark.asyncio
async def test_delivered_today_only_counts_today(db_session, client_row, driver):
    now = datetime.now(timezone.utc)
    await make_package(db_session, "TODAY", client_row, status=S.DELIVERED, driver=driver, updated_at=now)
    await make_package(db_session, "OLD", client_row, status=S.DELIVERED, driver=driver,
                       updated_at=now - timedelta(days=3))

    result = await query_packages(
        db_session,
        PackageQuery(status_predicate=view_filters.resolve("livres_aujourdhui")),
        caller_for(driver),
    )
    assert [p.id for p in result.items] == ["TODAY"]


def test_date_ranges():
    now = datetime(2026, 3, 10, 15, 30, tzinfo=timezone.utc)

    start, end = date_range("hier", now)
    assert start == datetime(2026, 3, 9, tzinfo=timezone.utc)
    assert end == datetime(2026, 3, 10, tzinfo=timezone.utc)

    start, end = date_range("le_mois_dernier", now)
    assert start == datetime(2026, 2, 1, tzinfo=timezone.utc)
    assert end == datetime(2026, 3, 1, tzinfo=timezone.utc)

    assert date_range("toutes", now) == (None, None)
    with pytest.raises(ValidationFailedError):
        date_range("demain", now)


@pytest.mark.asyncio
async def test_page_size_capped(db_session, admin, mixed_packages):
    result = await query_packages(db_session, PackageQuery(page_size=10_000), caller_for(admin))
    assert result.page_size == 100
