"""
Reference data lookups: clients, partner companies and drivers.
"""

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from logitrack.app.core.exceptions import ValidationFailedError
from logitrack.app.db.session import commit_or_rollback
from logitrack.app.models.client import Client
from logitrack.app.models.company import Company
from logitrack.app.models.user import User
from logitrack.app.models.enums import UserRole


async def list_clients(db: AsyncSession, search: Optional[str] = None) -> List[Client]:
    query = select(Client).order_by(Client.name.asc())
    if search:
        query = query.where(Client.name.ilike(f"%{search.strip()}%"))
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_companies(db: AsyncSession) -> List[Company]:
    result = await db.execute(select(Company).order_by(Company.name.asc()))
    return list(result.scalars().all())


async def list_drivers(db: AsyncSession, active_only: bool = False) -> List[User]:
    """Drivers ordered by last name."""
    query = (
        select(User)
        .where(User.role == UserRole.DRIVER)
        .order_by(User.last_name.asc(), User.first_name.asc())
    )
    if active_only:
        query = query.where(User.is_active == True)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_client(db: AsyncSession, fields: dict) -> Client:
    name = (fields.get("name") or "").strip()
    if not name:
        raise ValidationFailedError("Client name must not be empty", field="name")
    client = Client(**{**fields, "name": name})
    db.add(client)
    await commit_or_rollback(db)
    await db.refresh(client)
    return client
