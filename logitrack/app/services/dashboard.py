"""
Dashboard statistics.

Headline counters for the back-office dashboard and the driver home screen.
Counts reuse the view filter predicates so a tile and the list it opens
always agree.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from logitrack.app.models.package import Package
from logitrack.app.models.client import Client
from logitrack.app.models.company import Company
from logitrack.app.models.user import User
from logitrack.app.models.enums import UserRole
from logitrack.app.services import view_filters
from logitrack.app.services.package_query import predicate_clause


class DashboardService:

    @staticmethod
    async def _count(db: AsyncSession, *where) -> int:
        result = await db.execute(select(func.count(Package.id)).where(*where))
        return result.scalar() or 0

    @staticmethod
    async def _count_key(db: AsyncSession, key: str, now: Optional[datetime] = None, *where) -> int:
        clause = predicate_clause(view_filters.resolve(key), now)
        return await DashboardService._count(db, clause, *where)

    @staticmethod
    async def back_office_stats(db: AsyncSession) -> Dict[str, int]:
        total = await DashboardService._count(db)

        clients = await db.execute(select(func.count(Client.id)))
        companies = await db.execute(select(func.count(Company.id)))
        drivers = await db.execute(
            select(func.count(User.id)).where(User.role == UserRole.DRIVER, User.is_active == True)
        )

        return {
            "total_packages": total,
            "pending": await DashboardService._count_key(db, "en_attente"),
            "processing": await DashboardService._count_key(db, "en_traitement"),
            "delivered": await DashboardService._count_key(db, "livres"),
            "returned": await DashboardService._count_key(db, "retournes"),
            "registered_clients": clients.scalar() or 0,
            "partner_companies": companies.scalar() or 0,
            "active_drivers": drivers.scalar() or 0,
        }

    @staticmethod
    async def driver_stats(db: AsyncSession, driver_id: int, now: Optional[datetime] = None) -> Dict[str, int]:
        mine = Package.driver_id == driver_id
        return {
            "to_deliver_today": await DashboardService._count_key(db, "a_livrer_aujourdhui", now, mine),
            "in_progress": await DashboardService._count_key(db, "en_cours", now, mine),
            "delivered_today": await DashboardService._count_key(db, "livres_aujourdhui", now, mine),
            "returned": await DashboardService._count_key(db, "retournes_livreur", now, mine),
        }

    @staticmethod
    async def recent_activity(db: AsyncSession, limit: int = 5, driver_id: Optional[int] = None) -> List[Package]:
        """Most recently updated packages."""
        query = select(Package).order_by(Package.updated_at.desc(), Package.id.desc()).limit(limit)
        if driver_id is not None:
            query = query.where(Package.driver_id == driver_id)
        result = await db.execute(query)
        return list(result.scalars().all())
