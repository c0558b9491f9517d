"""
Tests for the status catalog.

Ordering, activation, colour fallback and name validation, through the
service and the HTTP surface.
"""

import pytest
from sqlalchemy import select, func

from logitrack.app.core.exceptions import ValidationFailedError
from logitrack.app.models.status import Status
from logitrack.app.models.status_enums import StatusEntityType, StatusColor
from logitrack.app.services.status_catalog import StatusCatalog, resolve_color, DEFAULT_PACKAGE_STATUSES
from logitrack.tests.factories import auth_headers


@pytest.mark.asyncio
async def test_list_orders_by_display_order_and_hides_inactive(db_session):
    await StatusCatalog.create(db_session, "Livré", StatusEntityType.PACKAGE, "green", display_order=3)
    await StatusCatalog.create(db_session, "en_attente", StatusEntityType.PACKAGE, "yellow", display_order=1)
    await StatusCatalog.create(db_session, "Archivé", StatusEntityType.PACKAGE, "gray", display_order=2, active=False)
    await StatusCatalog.create(db_session, "Payé", StatusEntityType.VOUCHER, "green", display_order=0)

    active = await StatusCatalog.list(db_session, StatusEntityType.PACKAGE)
    assert [s.name for s in active] == ["en_attente", "Livré"]

    everything = await StatusCatalog.list_all(db_session, StatusEntityType.PACKAGE)
    assert [s.name for s in everything] == ["en_attente", "Archivé", "Livré"]


@pytest.mark.asyncio
async def test_ties_broken_by_id(db_session):
    first = await StatusCatalog.create(db_session, "B", StatusEntityType.DRIVER, display_order=1)
    second = await StatusCatalog.create(db_session, "A", StatusEntityType.DRIVER, display_order=1)

    listed = await StatusCatalog.list(db_session, StatusEntityType.DRIVER)
    assert [s.id for s in listed] == [first.id, second.id]


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   ", None])
async def test_blank_name_rejected_before_write(db_session, name):
    with pytest.raises(ValidationFailedError):
        await StatusCatalog.create(db_session, name, StatusEntityType.PACKAGE)

    count = await db_session.execute(select(func.count(Status.id)))
    assert count.scalar() == 0


@pytest.mark.asyncio
async def test_unknown_colour_falls_back_to_gray(db_session):
    status = await StatusCatalog.create(db_session, "Bizarre", StatusEntityType.CLIENT, color="turquoise")
    assert status.color == "gray"
    assert resolve_color(None) == StatusColor.GRAY
    assert resolve_color(" Red ") == StatusColor.RED


@pytest.mark.asyncio
async def test_deactivate_keeps_row(db_session):
    status = await StatusCatalog.create(db_session, "Relancé", StatusEntityType.PACKAGE)
    await StatusCatalog.deactivate(db_session, status.id)

    assert await StatusCatalog.list(db_session, StatusEntityType.PACKAGE) == []
    assert len(await StatusCatalog.list_all(db_session)) == 1


@pytest.mark.asyncio
async def test_seed_defaults_is_idempotent(db_session):
    assert await StatusCatalog.seed_defaults(db_session) == len(DEFAULT_PACKAGE_STATUSES)
    assert await StatusCatalog.seed_defaults(db_session) == 0

    listed = await StatusCatalog.list(db_session, StatusEntityType.PACKAGE)
    assert listed[0].name == "en_attente"


# HTTP

@pytest.mark.asyncio
async def test_admin_manages_catalog(client, admin):
    response = await client.post(
        "/v1/statuses",
        json={"name": "En douane", "entity_type": "package", "color": "purple", "display_order": 4},
        headers=auth_headers(admin),
    )
    assert response.status_code == 201
    status_id = response.json()["id"]

    response = await client.patch(
        f"/v1/statuses/{status_id}", json={"active": False}, headers=auth_headers(admin)
    )
    assert response.status_code == 200
    assert response.json()["active"] is False

    response = await client.get("/v1/statuses", headers=auth_headers(admin))
    assert response.json() == []

    response = await client.delete(f"/v1/statuses/{status_id}", headers=auth_headers(admin))
    assert response.status_code == 204


@pytest.mark.asyncio
async def test_blank_name_returns_validation_error(client, admin):
    response = await client.post("/v1/statuses", json={"name": "  "}, headers=auth_headers(admin))
    assert response.status_code == 400
    assert response.json()["error_code"] == "ERR_VALIDATION_001"


@pytest.mark.asyncio
async def test_manager_and_driver_cannot_edit_catalog(client, manager, driver):
    for user in (manager, driver):
        response = await client.post("/v1/statuses", json={"name": "X"}, headers=auth_headers(user))
        assert response.status_code == 403


@pytest.mark.asyncio
async def test_everyone_reads_active_catalog(client, driver, db_session):
    await StatusCatalog.seed_defaults(db_session)
    response = await client.get("/v1/statuses", headers=auth_headers(driver))
    assert response.status_code == 200
    assert len(response.json()) == len(DEFAULT_PACKAGE_STATUSES)
