from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class PlanStatusOut(BaseModel):
    plan: str  # free | premium
    subscribed: bool
    subscription_end: Optional[datetime] = None
    property_count: int
    property_limit: Optional[int] = None  # None = unlimited
    can_add_property: bool
