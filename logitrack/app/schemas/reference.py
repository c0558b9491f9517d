"""
Reference data schemas (clients, companies, drivers).
"""

from pydantic import BaseModel, Field
from typing import Optional


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None


class ClientResponse(BaseModel):
    id: int
    name: str
    phone: Optional[str]
    email: Optional[str]
    address: Optional[str]
    city: Optional[str]

    class Config:
        from_attributes = True


class CompanyResponse(BaseModel):
    id: int
    name: str
    contact: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    address: Optional[str]

    class Config:
        from_attributes = True


class DriverResponse(BaseModel):
    id: int
    username: str
    first_name: Optional[str]
    last_name: str
    phone: Optional[str]
    zone: Optional[str]
    vehicle: Optional[str]
    is_active: bool

    class Config:
        from_attributes = True
