"""
Test data builders and identity helpers.
"""

from datetime import datetime, timedelta, timezone

from logitrack.app.core.jwt import token_for_user
from logitrack.app.core.roles import Caller
from logitrack.app.models.user import User
from logitrack.app.models.package import Package
from logitrack.app.models.package_enums import PackageStatus


def auth_headers(user: User) -> dict:
    token = token_for_user(user.id, user.username)
    return {"Authorization": f"Bearer {token}"}


def caller_for(user: User) -> Caller:
    return Caller(user_id=user.id, role=user.role, username=user.username)


async def make_user(db, username, role, first_name="Test", last_name=None, is_active=True, **extra) -> User:
    user = User(
        username=username,
        first_name=first_name,
        last_name=last_name or username.capitalize(),
        role=role,
        is_active=is_active,
        **extra,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


_BASE_TIME = datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)


async def make_package(db, package_id, client, status=PackageStatus.PENDING, driver=None,
                       company=None, price=10.0, created_offset=0, updated_at=None) -> Package:
    """Insert a package row directly, with a deterministic creation time."""
    created_at = _BASE_TIME + timedelta(minutes=created_offset)
    package = Package(
        id=package_id,
        client_id=client.id,
        company_id=company.id if company else None,
        driver_id=driver.id if driver else None,
        status=status,
        price=price,
        fee=0.0,
        created_at=created_at,
        updated_at=updated_at or created_at,
    )
    db.add(package)
    await db.commit()
    await db.refresh(package)
    return package


