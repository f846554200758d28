from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional, List
from datetime import date, datetime

from app.schemas.payment import PaymentOut


class TenantBase(BaseModel):
    name: str = Field(min_length=3)
    email: EmailStr
    phone: str = Field(min_length=8)
    national_id: str = Field(min_length=11)  # CPF: 11 digits
    property_id: str
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_lease_window(self) -> "TenantBase":
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class TenantCreate(TenantBase):
    pass


class TenantUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=8)
    national_id: Optional[str] = Field(None, min_length=11)
    property_id: Optional[str] = None  # explicit null unassigns the tenant
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def validate_lease_window(self) -> "TenantUpdate":
        # PATCH-safe: only when both ends are in this payload; the service checks the merged window
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class TenantOut(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    national_id: str
    property_id: Optional[str] = None
    property_name: Optional[str] = None  # read-time join
    start_date: date
    end_date: date
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TenantCreatedOut(BaseModel):
    tenant: TenantOut
    payment: PaymentOut


class TenantDetailOut(TenantOut):
    payments: List[PaymentOut] = []
