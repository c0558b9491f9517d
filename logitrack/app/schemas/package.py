"""
Package Pydantic schemas.

Defines request and response models for package management.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List


class PackageCreate(BaseModel):
    """Schema for creating a new package."""
    id: Optional[str] = Field(None, max_length=50, description="Reference; generated when omitted")
    client_id: Optional[int] = Field(None, description="Required; checked by the store")
    company_id: Optional[int] = None
    driver_id: Optional[int] = None
    status: Optional[str] = Field(None, max_length=100)
    price: float = Field(default=0.0, ge=0)
    fee: float = Field(default=0.0, ge=0)
    delivery_address: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None


class PackageUpdate(BaseModel):
    """Schema for a partial update. Assignment has its own endpoints."""
    client_id: Optional[int] = None
    company_id: Optional[int] = None
    status: Optional[str] = Field(None, max_length=100)
    price: Optional[float] = Field(None, ge=0)
    fee: Optional[float] = Field(None, ge=0)
    delivery_address: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None


class StatusChangeRequest(BaseModel):
    status: str = Field(..., max_length=100)


class AssignRequest(BaseModel):
    driver_id: int


class PartyRef(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class DriverRef(BaseModel):
    id: int
    first_name: Optional[str]
    last_name: str

    class Config:
        from_attributes = True


class PackageResponse(BaseModel):
    """Schema for package response."""
    id: str
    client_id: int
    company_id: Optional[int]
    driver_id: Optional[int]
    status: str
    price: float
    fee: float
    delivery_address: Optional[str]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime
    client: Optional[PartyRef] = None
    company: Optional[PartyRef] = None
    driver: Optional[DriverRef] = None

    class Config:
        from_attributes = True


class PackageMutationResponse(PackageResponse):
    """Package after a status-bearing write."""
    status_changed: bool = False
    transition_flagged: bool = False
    previous_status: Optional[str] = None


class PackageListResponse(BaseModel):
    """Schema for paginated package list."""
    packages: List[PackageResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool
    title: Optional[str] = None


class PackageHistoryResponse(BaseModel):
    id: int
    package_id: str
    status: str
    previous_status: Optional[str]
    acting_user_id: Optional[int]
    timestamp: datetime

    class Config:
        from_attributes = True
