from decimal import Decimal

from fastapi import APIRouter, Depends

from app.api.deps import get_store
from app.api.routes.payments import attach_names, audit_generated, audit_reconciled
from app.core.auth import get_current_user, User
from app.models.payment import Payment
from app.models.property import Property
from app.models.tenant import Tenant
from app.schemas.dashboard import DashboardOut
from app.services import payments as lifecycle
from app.services import tenancy
from app.services.store import Store

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardOut)
def get_dashboard(
    store: Store = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    """
    Top cards + open payments list.

    Loading the dashboard is what keeps payments current: it generates the
    next cycle's payments and reconciles overdue ones before counting.
    """
    generated = lifecycle.generate_monthly_payments(store)
    reconciled = lifecycle.reconcile_overdue_payments(store)
    audit_generated(store, current_user, generated)
    audit_reconciled(store, current_user, reconciled)

    properties = store.query(Property)
    occupied = sum(1 for p in properties if p.status == tenancy.OCCUPIED)

    payments = store.query(Payment, order_by=(Payment.due_date,))
    totals = {status: {"count": 0, "total": Decimal("0")} for status in lifecycle.STATUSES}
    for p in payments:
        totals[p.status]["count"] += 1
        totals[p.status]["total"] += Decimal(p.amount)

    open_payments = [p for p in payments if p.status in lifecycle.OPEN_STATUSES]

    return {
        "total_properties": len(properties),
        "occupied_properties": occupied,
        "available_properties": len(properties) - occupied,
        "total_tenants": store.count(Tenant),
        "pending": totals[lifecycle.PENDING],
        "overdue": totals[lifecycle.OVERDUE],
        "paid": totals[lifecycle.PAID],
        "generated_payments": len(generated),
        "reconciled_payments": len(reconciled),
        "open_payments": attach_names(store, open_payments),
        "occupancy_problems": tenancy.check_occupancy(store),
    }
