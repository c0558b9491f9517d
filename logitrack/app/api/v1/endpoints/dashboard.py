"""
Dashboard API Endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from logitrack.app.db.session import get_db
from logitrack.app.core.exceptions import ValidationFailedError
from logitrack.app.core.guards import get_caller, require_capability
from logitrack.app.core.roles import Caller
from logitrack.app.schemas.dashboard import BackOfficeStats, DriverStats
from logitrack.app.schemas.package import PackageResponse
from logitrack.app.services.dashboard import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats", response_model=BackOfficeStats)
async def back_office_stats(
    caller: Caller = Depends(require_capability("can_manage_packages")),
    db: AsyncSession = Depends(get_db)
):
    return await DashboardService.back_office_stats(db)


@router.get("/driver-stats", response_model=DriverStats)
async def driver_stats(
    driver_id: Optional[int] = Query(None),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    if caller.profile.scoped_to_own_packages:
        driver_id = caller.user_id
    elif driver_id is None:
        raise ValidationFailedError("driver_id is required", field="driver_id")
    return await DashboardService.driver_stats(db, driver_id)


@router.get("/recent-activity", response_model=List[PackageResponse])
async def recent_activity(
    limit: int = Query(5, ge=1, le=50),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Most recently updated packages visible to the caller."""
    driver_id = caller.user_id if caller.profile.scoped_to_own_packages else None
    return await DashboardService.recent_activity(db, limit, driver_id)
