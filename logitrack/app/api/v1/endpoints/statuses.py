"""
Status catalog API endpoints.

Everyone can read the active catalog; only catalog managers (admins) can
change it.
"""

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from logitrack.app.db.session import get_db
from logitrack.app.models.status_enums import StatusEntityType
from logitrack.app.schemas.status import StatusCreate, StatusUpdate, StatusResponse
from logitrack.app.core.guards import get_caller, require_capability
from logitrack.app.core.roles import Caller
from logitrack.app.services.status_catalog import StatusCatalog

router = APIRouter(prefix="/statuses", tags=["Status Catalog"])


@router.get("", response_model=List[StatusResponse])
async def list_statuses(
    entity_type: StatusEntityType = Query(StatusEntityType.PACKAGE),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    """Active statuses of one entity type, in display order."""
    return await StatusCatalog.list(db, entity_type)


@router.get("/all", response_model=List[StatusResponse])
async def list_all_statuses(
    entity_type: Optional[StatusEntityType] = Query(None),
    caller: Caller = Depends(require_capability("can_manage_catalog")),
    db: AsyncSession = Depends(get_db)
):
    """Every status, inactive ones included."""
    return await StatusCatalog.list_all(db, entity_type)


@router.post("", response_model=StatusResponse, status_code=status.HTTP_201_CREATED)
async def create_status(
    data: StatusCreate,
    caller: Caller = Depends(require_capability("can_manage_catalog")),
    db: AsyncSession = Depends(get_db)
):
    return await StatusCatalog.create(
        db,
        name=data.name,
        entity_type=data.entity_type,
        color=data.color,
        display_order=data.display_order,
        active=data.active,
    )


@router.patch("/{status_id}", response_model=StatusResponse)
async def update_status(
    data: StatusUpdate,
    status_id: int = Path(...),
    caller: Caller = Depends(require_capability("can_manage_catalog")),
    db: AsyncSession = Depends(get_db)
):
    return await StatusCatalog.update(db, status_id, data.model_dump(exclude_unset=True))


@router.delete("/{status_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_status(
    status_id: int = Path(...),
    caller: Caller = Depends(require_capability("can_manage_catalog")),
    db: AsyncSession = Depends(get_db)
):
    await StatusCatalog.delete(db, status_id)
