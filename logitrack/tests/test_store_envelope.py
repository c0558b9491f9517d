"""
Tests for the LogiTrackStore envelope: result shape and error capture.
"""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from logitrack.app.models.package_enums import PackageStatus as S
from logitrack.app.models.status_enums import StatusEntityType
from logitrack.app.services import view_filters
from logitrack.app.services.badges import cache_key
from logitrack.app.services.package_query import PackageQuery
from logitrack.app.services.store import LogiTrackStore
from logitrack.tests.factories import caller_for, make_package


@pytest.fixture
def store(session_factory):
    return LogiTrackStore(session_factory)


@pytest.mark.asyncio
async def test_list_packages_carries_pagination(store, db_session, client_row, admin):
    for i in range(5):
        await make_package(db_session, f"P{i}", client_row, created_offset=i)

    result = await store.list_packages(PackageQuery(page=2, page_size=2), caller_for(admin))

    assert result.ok
    assert [p.id for p in result.data] == ["P2", "P1"]
    assert result.count == 5
    assert result.total_pages == 3
    assert result.has_next_page is True
    assert result.has_prev_page is True


@pytest.mark.asyncio
async def test_errors_are_returned_not_raised(store, admin):
    result = await store.create_package({"price": 12}, caller_for(admin))
    assert not result.ok
    assert result.data is None
    assert "client" in result.error.lower()

    missing = await store.get_package_by_id("NOPE")
    assert "not found" in missing.error


@pytest.mark.asyncio
async def test_package_lifecycle_through_store(store, client_row, admin):
    created = await store.create_package({"client_id": client_row.id}, caller_for(admin))
    assert created.ok
    package_id = created.data.id

    updated = await store.update_package(package_id, {"status": S.PICKED_UP}, caller_for(admin))
    assert updated.data.status == S.PICKED_UP

    illegal = await store.update_package(package_id, {"status": S.DELIVERED}, caller_for(admin))
    assert not illegal.ok

    deleted = await store.delete_package(package_id)
    assert deleted.ok


@pytest.mark.asyncio
async def test_count_packages_by_status(store, db_session, client_row, driver):
    await make_package(db_session, "A", client_row, status=S.RELAUNCHED, driver=driver)
    await make_package(db_session, "B", client_row, status=S.RELAUNCHED)

    everyone = await store.count_packages_by_status([S.RELAUNCHED, S.RETURNED])
    assert everyone.data == {S.RELAUNCHED: 2, S.RETURNED: 0}

    mine = await store.count_packages_by_status([S.RELAUNCHED], driver_id=driver.id)
    assert mine.data == {S.RELAUNCHED: 1}


@pytest.mark.asyncio
async def test_catalog_and_reference_calls(store, admin, manager, driver, client_row, company_row):
    created = await store.create_status("En douane", StatusEntityType.PACKAGE, color="pink")
    assert created.data.color == "pink"

    blank = await store.create_status(" ", StatusEntityType.PACKAGE)
    assert not blank.ok

    assert len((await store.list_statuses()).data) == 1
    assert (await store.update_status(created.data.id, {"active": False})).data.active is False
    assert (await store.list_statuses()).data == []
    assert len((await store.list_all_statuses()).data) == 1
    assert (await store.delete_status(created.data.id)).ok

    assert [c.name for c in (await store.list_clients()).data] == ["Boutique Atlas"]
    assert [c.name for c in (await store.list_companies()).data] == ["Express Partenaire"]
    assert [d.id for d in (await store.list_drivers()).data] == [driver.id]
    assert {u.id for u in (await store.list_admin_and_manager_users()).data} == {admin.id, manager.id}


@pytest.mark.asyncio
async def test_notification_calls(store, admin):
    created = await store.create_notification(admin.id, "Bonjour", "Bienvenue")
    assert created.ok

    assert (await store.unread_count(admin.id)).data == 1
    assert (await store.mark_notification_read(created.data.id, admin.id)).data is True
    assert (await store.mark_all_notifications_read(admin.id)).data == 0
    assert len((await store.list_notifications(admin.id)).data) == 1

    assert (await store.delete_notification(created.data.id, admin.id)).ok
    assert not (await store.delete_notification(created.data.id, admin.id)).ok


@pytest.mark.asyncio
async def test_filtered_listing(store, db_session, client_row, admin):
    await make_package(db_session, "A", client_row, status=S.PENDING)
    await make_package(db_session, "B", client_row, status=S.IN_TRANSIT)

    result = await store.list_packages(
        PackageQuery(status_predicate=view_filters.resolve("en_attente")), caller_for(admin)
    )
    assert [p.id for p in result.data] == ["A"]


@pytest.mark.asyncio
async def test_driver_counts_fall_back_to_cached_badges(store, db_session, client_row, driver, mock_redis, mocker):
    await make_package(db_session, "A", client_row, status=S.RELAUNCHED, driver=driver)

    first = await store.count_packages_by_status([S.RELAUNCHED], driver_id=driver.id)
    assert first.data == {S.RELAUNCHED: 1}
    assert cache_key(driver.id) in mock_redis.store

    mocker.patch.object(AsyncSession, "execute", side_effect=OperationalError("SELECT", {}, Exception("db down")))
    fallback = await store.count_packages_by_status([S.RELAUNCHED], driver_id=driver.id)

    assert fallback.ok
    assert fallback.data == {S.RELAUNCHED: 1}
