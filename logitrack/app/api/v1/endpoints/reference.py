"""
Reference data API endpoints: clients, companies and drivers.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from logitrack.app.db.session import get_db
from logitrack.app.core.guards import get_caller, require_capability
from logitrack.app.core.roles import Caller
from logitrack.app.schemas.reference import ClientCreate, ClientResponse, CompanyResponse, DriverResponse
from logitrack.app.services import reference_data

router = APIRouter(tags=["Reference Data"])


@router.get("/clients", response_model=List[ClientResponse])
async def list_clients(
    search: Optional[str] = Query(None),
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    return await reference_data.list_clients(db, search)


@router.post("/clients", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    data: ClientCreate,
    caller: Caller = Depends(require_capability("can_manage_packages")),
    db: AsyncSession = Depends(get_db)
):
    return await reference_data.create_client(db, data.model_dump())


@router.get("/companies", response_model=List[CompanyResponse])
async def list_companies(
    caller: Caller = Depends(get_caller),
    db: AsyncSession = Depends(get_db)
):
    return await reference_data.list_companies(db)


@router.get("/drivers", response_model=List[DriverResponse])
async def list_drivers(
    active_only: bool = Query(False),
    caller: Caller = Depends(require_capability("can_assign")),
    db: AsyncSession = Depends(get_db)
):
    """Drivers ordered by last name."""
    return await reference_data.list_drivers(db, active_only)
