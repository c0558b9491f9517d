"""
Package API Endpoints.

Back office (admins, managers) manage every package and the unassigned
pool. Drivers see and update the status of the packages assigned to them.
"""

from fastapi import APIRouter, Depends, HTTPException, status, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from logitrack.app.db.session import get_db
from logitrack.app.core.config import settings
from logitrack.app.core.guards import get_caller, require_capability, PackageAccessGuard
from logitrack.app.core.roles import Caller
from logitrack.app.schemas.package import (
    PackageCreate,
    PackageUpdate,
    PackageResponse,
    PackageMutationResponse,
    PackageListResponse,
    PackageHistoryResponse,
    StatusChangeRequest,
    AssignRequest,
)
from logitrack.app.services import assignment, view_filters
from logitrack.app.services.audit import get_package_history
from logitrack.app.services.package_query import PackageQuery, query_packages
from logitrack.app.services.package_store import PackageStore, StatusChange

router = APIRouter(prefix="/packages", tags=["Packages"])
access_guard = PackageAccessGuard()


def _mutation_response(result: StatusChange) -> PackageMutationResponse:
    base = PackageResponse.model_validate(result.package).model_dump()
    return PackageMutationResponse(
        **base,
        status_changed=result.changed,
        transition_flagged=result.flagged,
        previous_status=result.previous_status,
    )


@router.get("", response_model=PackageListResponse)
async def list_packages(
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    search: Optional[str] = Query(None, description="Matches reference, client or company name"),
    sort_by: str = Query("recent", description="recent, oldest, price_high, price_low, status"),
    filter: Optional[str] = Query(None, description="Dashboard filter key, e.g. en_traitement"),
    driver_id: Optional[str] = Query(None, description="Driver id or 'unassigned' (back office only)"),
    date_filter: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """
    List packages visible to the caller.

    Drivers always get their own packages; a driver_id parameter is ignored
    for them. An unknown filter key returns no packages.
    """
    query = PackageQuery(
        page=page,
        page_size=page_size,
        search_term=search,
        sort_by=sort_by,
        status_predicate=view_filters.resolve(filter) if filter is not None else None,
        driver_id=driver_id,
        date_filter=date_filter,
    )
    result = await query_packages(db, query, caller)

    return PackageListResponse(
        packages=[PackageResponse.model_validate(p) for p in result.items],
        total=result.total_count,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
        has_next_page=result.has_next_page,
        has_prev_page=result.has_prev_page,
        title=view_filters.page_title(filter) if filter is not None else None,
    )


@router.post("", response_model=PackageMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_package(
    data: PackageCreate,
    caller: Caller = Depends(require_capability("can_manage_packages")),
    db: AsyncSession = Depends(get_db)
):
    package = await PackageStore.create(db, data.model_dump(), caller)
    return _mutation_response(StatusChange(package=package, changed=True))


@router.get("/unassigned", response_model=List[PackageResponse])
async def list_unassigned_packages(
    limit: int = Query(50, ge=1, le=500),
    caller: Caller = Depends(require_capability("can_assign")),
    db: AsyncSession = Depends(get_db)
):
    """The unassigned pool, newest first."""
    return await assignment.list_unassigned(db, limit)


@router.get("/{package_id}", response_model=PackageResponse)
async def get_package(
    package_id: str = Path(...),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    package = await PackageStore.get(db, package_id)
    access_guard.enforce(package, caller)
    return package


@router.patch("/{package_id}", response_model=PackageMutationResponse)
async def update_package(
    data: PackageUpdate,
    package_id: str = Path(...),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """
    Partial update.

    Drivers may only send `status`, and only for their own packages.
    """
    changes = data.model_dump(exclude_unset=True)

    if not caller.profile.can_manage_packages:
        package = await PackageStore.get(db, package_id)
        access_guard.enforce(package, caller)
        if set(changes) - {"status"}:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Drivers can only change the status of a package"
            )

    result = await PackageStore.update(db, package_id, changes, caller)
    return _mutation_response(result)


@router.patch("/{package_id}/status", response_model=PackageMutationResponse)
async def change_package_status(
    data: StatusChangeRequest,
    package_id: str = Path(...),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Move a package along its lifecycle. Writes one audit entry."""
    package = await PackageStore.get(db, package_id)
    access_guard.enforce(package, caller)

    result = await PackageStore.change_status(db, package_id, data.status, caller)
    return _mutation_response(result)


@router.get("/{package_id}/history", response_model=List[PackageHistoryResponse])
async def package_history(
    package_id: str = Path(...),
    limit: int = Query(100, ge=1, le=1000),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Status changes of a package, oldest first."""
    package = await PackageStore.get(db, package_id)
    access_guard.enforce(package, caller)
    return await get_package_history(db, package_id, limit)


@router.delete("/{package_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_package(
    package_id: str = Path(...),
    caller: Caller = Depends(require_capability("can_manage_packages")),
    db: AsyncSession = Depends(get_db)
):
    await PackageStore.delete(db, package_id)


@router.post("/{package_id}/assign", response_model=PackageResponse)
async def assign_package(
    data: AssignRequest,
    package_id: str = Path(...),
    caller: Caller = Depends(require_capability("can_assign")),
    db: AsyncSession = Depends(get_db)
):
    """
    Assign a pool package to a driver.

    Returns 409 when the package already has a driver.
    """
    return await assignment.assign(db, package_id, data.driver_id)


@router.post("/{package_id}/unassign", response_model=PackageResponse)
async def unassign_package(
    package_id: str = Path(...),
    caller: Caller = Depends(require_capability("can_assign")),
    db: AsyncSession = Depends(get_db)
):
    """Put a package back into the unassigned pool."""
    return await assignment.unassign(db, package_id)
