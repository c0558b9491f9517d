"""
Badge count API endpoint.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from logitrack.app.db.session import get_db
from logitrack.app.core.exceptions import ValidationFailedError
from logitrack.app.core.guards import get_caller
from logitrack.app.core.redis_client import get_redis
from logitrack.app.core.roles import Caller
from logitrack.app.schemas.badge import BadgeCountsResponse
from logitrack.app.services.badges import BadgeAggregator

router = APIRouter(prefix="/badges", tags=["Badges"])


@router.get("", response_model=BadgeCountsResponse)
async def badge_counts(
    driver_id: Optional[int] = Query(None, description="Back office only; drivers get their own counts"),
    statuses: Optional[List[str]] = Query(None, description="Defaults to the attention statuses"),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis),
):
    """Per-status package counts for one driver."""
    if caller.profile.scoped_to_own_packages:
        driver_id = caller.user_id
    elif driver_id is None:
        raise ValidationFailedError("driver_id is required", field="driver_id")

    counts = await BadgeAggregator(redis).counts(db, driver_id, statuses)
    return BadgeCountsResponse(driver_id=driver_id, counts=counts, total=sum(counts.values()))
