"""
Status catalog schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from logitrack.app.models.status_enums import StatusEntityType


class StatusCreate(BaseModel):
    """Schema for creating a catalog status. Blank names are rejected by the service."""
    name: str = Field(..., max_length=100)
    entity_type: StatusEntityType = StatusEntityType.PACKAGE
    color: Optional[str] = Field(None, description="Palette colour; unknown values fall back to gray")
    display_order: int = 0
    active: bool = True


class StatusUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    color: Optional[str] = None
    display_order: Optional[int] = None
    active: Optional[bool] = None


class StatusResponse(BaseModel):
    id: int
    name: str
    color: str
    entity_type: StatusEntityType
    display_order: int
    active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
