"""
Tests for the assignment pool.

Assignment is a conditional update: only a package with no driver can be
assigned, and a stale reader loses with a conflict instead of overwriting.
"""

import pytest
from sqlalchemy import select, func

from logitrack.app.core.exceptions import AssignmentConflictError, ValidationFailedError, ResourceNotFoundError
from logitrack.app.models.package import Package
from logitrack.app.models.package_history import PackageHistory
from logitrack.app.models.package_enums import PackageStatus as S
from logitrack.app.models.enums import UserRole
from logitrack.app.services import assignment
from logitrack.tests.factories import make_package, make_user, auth_headers


@pytest.mark.asyncio
async def test_pool_lists_unassigned_newest_first(db_session, client_row, driver):
    await make_package(db_session, "OLD", client_row, created_offset=1)
    await make_package(db_session, "NEW", client_row, created_offset=5)
    await make_package(db_session, "TAKEN", client_row, driver=driver, created_offset=9)

    pool = await assignment.list_unassigned(db_session)
    assert [p.id for p in pool] == ["NEW", "OLD"]

    assert [p.id for p in await assignment.list_unassigned(db_session, limit=1)] == ["NEW"]


@pytest.mark.asyncio
async def test_assign_keeps_status_and_writes_no_audit(db_session, client_row, driver):
    await make_package(db_session, "P1", client_row, status=S.PICKED_UP)

    package = await assignment.assign(db_session, "P1", driver.id)

    assert package.driver_id == driver.id
    assert package.status == S.PICKED_UP
    history = await db_session.execute(select(func.count()).select_from(PackageHistory))
    assert history.scalar() == 0
    assert await assignment.list_unassigned(db_session) == []


@pytest.mark.asyncio
async def test_second_assignment_conflicts(db_session, client_row, driver, driver2):
    await make_package(db_session, "P1", client_row)
    await assignment.assign(db_session, "P1", driver.id)

    with pytest.raises(AssignmentConflictError) as exc_info:
        await assignment.assign(db_session, "P1", driver2.id)

    assert exc_info.value.status_code == 409
    assert exc_info.value.details["current_driver_id"] == driver.id


@pytest.mark.asyncio
async def test_stale_reader_loses_race(session_factory, db_session, client_row, driver, driver2):
    """Both back-office users saw the package in the pool; the second write must not win."""
    await make_package(db_session, "P1", client_row)

    async with session_factory() as first, session_factory() as second:
        seen_by_second = await second.get(Package, "P1")
        assert seen_by_second.driver_id is None

        await assignment.assign(first, "P1", driver.id)

        with pytest.raises(AssignmentConflictError):
            await assignment.assign(second, "P1", driver2.id)

    async with session_factory() as fresh:
        stored = await fresh.get(Package, "P1")
        assert stored.driver_id == driver.id


@pytest.mark.asyncio
async def test_assign_validates_driver(db_session, client_row, manager):
    await make_package(db_session, "P1", client_row)
    inactive = await make_user(db_session, "parti", UserRole.DRIVER, is_active=False)

    with pytest.raises(ValidationFailedError):
        await assignment.assign(db_session, "P1", manager.id)
    with pytest.raises(ValidationFailedError):
        await assignment.assign(db_session, "P1", inactive.id)
    with pytest.raises(ResourceNotFoundError):
        await assignment.assign(db_session, "P1", 9999)
    other_driver = await make_user(db_session, "d3", UserRole.DRIVER)
    with pytest.raises(ResourceNotFoundError):
        await assignment.assign(db_session, "NOPE", other_driver.id)


@pytest.mark.asyncio
async def test_unassign_returns_package_to_pool(db_session, client_row, driver):
    await make_package(db_session, "P1", client_row, driver=driver)
    package = await assignment.unassign(db_session, "P1")

    assert package.driver_id is None
    assert [p.id for p in await assignment.list_unassigned(db_session)] == ["P1"]


# HTTP

@pytest.mark.asyncio
async def test_assign_endpoint_conflict(client, db_session, client_row, manager, driver, driver2):
    await make_package(db_session, "P1", client_row)

    response = await client.post("/v1/packages/P1/assign", json={"driver_id": driver.id}, headers=auth_headers(manager))
    assert response.status_code == 200
    assert response.json()["driver_id"] == driver.id

    response = await client.post("/v1/packages/P1/assign", json={"driver_id": driver2.id}, headers=auth_headers(manager))
    assert response.status_code == 409
    assert response.json()["error_code"] == "ERR_CONFLICT_001"


@pytest.mark.asyncio
async def test_drivers_cannot_use_pool(client, db_session, client_row, driver):
    await make_package(db_session, "P1", client_row)

    response = await client.get("/v1/packages/unassigned", headers=auth_headers(driver))
    assert response.status_code == 403

    response = await client.post("/v1/packages/P1/assign", json={"driver_id": driver.id}, headers=auth_headers(driver))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_pool_endpoint(client, db_session, client_row, admin):
    await make_package(db_session, "P1", client_row)
    response = await client.get("/v1/packages/unassigned", headers=auth_headers(admin))
    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == ["P1"]
