from pydantic import BaseModel
from datetime import datetime
from typing import Literal, Optional
from vehicle_portal.schemas.account import OwnerOut


class RegistrationUpdate(BaseModel):
    """Partial edit. Fields left out keep their stored value."""
    vehicle_type: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    vin: Optional[str] = None
    license_plate: Optional[str] = None
    owner_name: Optional[str] = None
    owner_contact: Optional[str] = None
    expiry_date: Optional[datetime] = None


class StatusUpdate(BaseModel):
    status: Literal["Approved", "Rejected"]


class RegistrationOut(BaseModel):
    id: int
    owner_id: int
    vehicle_type: str
    make: str
    model: str
    year: int
    vin: str
    license_plate: str
    owner_name: str
    owner_contact: str
    registration_date: datetime
    expiry_date: datetime
    documents: list[str]
    status: str
    display_status: str      # "Expired" once expiry_date has passed
    is_expired: bool
    created_at: datetime
    updated_at: Optional[datetime]
    owner: Optional[OwnerOut] = None

    class Config:
        from_attributes = True


class TypeCount(BaseModel):
    vehicle_type: str
    count: int


class RegistrationStats(BaseModel):
    total: int
    pending: int
    approved: int
    rejected: int
    by_type: list[TypeCount]


class ReportRequest(BaseModel):
    ids: list[int]
