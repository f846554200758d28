from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class PropertyBase(BaseModel):
    name: str = Field(min_length=1)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: Optional[str] = None
    type: str = Field(min_length=1)  # apartment / house / studio ...
    bedrooms: int = Field(0, ge=0)
    bathrooms: int = Field(0, ge=0)
    area: int = Field(0, ge=0)
    image_url: Optional[str] = None
    rent_amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    due_day: int = Field(ge=1, le=31)  # day of month rent is due


class PropertyCreate(PropertyBase):
    pass


class PropertyUpdate(BaseModel):
    # status / tenant_id are derived from tenant assignment and not accepted here
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    type: Optional[str] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    area: Optional[int] = Field(None, ge=0)
    image_url: Optional[str] = None
    rent_amount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    due_day: Optional[int] = Field(None, ge=1, le=31)
    version: Optional[int] = None  # optimistic concurrency: version the client last saw

    @field_validator("name", "address", "city", "state", "type")
    @classmethod
    def not_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError("cannot be blank")
        return v


class PropertyOut(PropertyBase):
    id: str
    status: str  # available | occupied
    tenant_id: Optional[str] = None
    tenant_name: Optional[str] = None  # read-time join, filled by the route
    version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OccupancyProblemOut(BaseModel):
    property_id: str
    status: str
    tenant_ids: List[str]
    problem: str
