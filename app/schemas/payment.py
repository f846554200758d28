from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Literal, Optional, List
from decimal import Decimal

PaymentStatus = Literal["pending", "paid", "overdue"]


class PaymentOut(BaseModel):
    id: str
    tenant_id: str
    property_id: str
    amount: Decimal
    due_date: date
    paid_date: Optional[date] = None
    status: PaymentStatus
    description: str
    version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PaymentListItemOut(PaymentOut):
    # presentation joins, resolved at read time and never stored on the payment
    tenant_name: Optional[str] = None
    property_name: Optional[str] = None


class PaymentStatusUpdate(BaseModel):
    status: PaymentStatus
    paid_date: Optional[date] = None  # defaults to today when marking paid
    override: bool = False  # required to move a paid payment back to pending/overdue
    version: Optional[int] = None


class PaymentCorrection(BaseModel):
    """Only for payments that are not paid yet."""
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    due_date: Optional[date] = None
    version: Optional[int] = None


class PaymentBatchOut(BaseModel):
    count: int
    payments: List[PaymentOut]
