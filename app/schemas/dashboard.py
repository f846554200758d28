from pydantic import BaseModel
from decimal import Decimal
from typing import List

from app.schemas.payment import PaymentListItemOut
from app.schemas.property import OccupancyProblemOut


class PaymentTotals(BaseModel):
    count: int = 0
    total: Decimal = Decimal("0")


class DashboardOut(BaseModel):
    total_properties: int
    occupied_properties: int
    available_properties: int
    total_tenants: int
    pending: PaymentTotals
    overdue: PaymentTotals
    paid: PaymentTotals
    generated_payments: int  # created by this load
    reconciled_payments: int  # moved to overdue by this load
    open_payments: List[PaymentListItemOut]  # pending + overdue, soonest first
    occupancy_problems: List[OccupancyProblemOut] = []
