from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from app.api.deps import get_store
from app.core.auth import get_current_user, User
from app.core.audit import log_audit
from app.models.payment import Payment
from app.models.property import Property
from app.models.tenant import Tenant
from app.schemas.payment import (
    PaymentBatchOut,
    PaymentCorrection,
    PaymentListItemOut,
    PaymentOut,
    PaymentStatus,
    PaymentStatusUpdate,
)
from app.services import payments as lifecycle
from app.services.store import Store

router = APIRouter(prefix="/payments", tags=["payments"])


def attach_names(store: Store, payments: List[Payment]) -> List[Payment]:
    """Resolve tenant/property names for display. Never written back to the payment."""
    tenant_ids = list({p.tenant_id for p in payments})
    property_ids = list({p.property_id for p in payments})
    tenants = {t.id: t.name for t in store.query(Tenant, {"id": tenant_ids})} if tenant_ids else {}
    props = {p.id: p.name for p in store.query(Property, {"id": property_ids})} if property_ids else {}
    for p in payments:
        p.tenant_name = tenants.get(p.tenant_id)
        p.property_name = props.get(p.property_id)
    return payments


def _matches(payment: Payment, term: str) -> bool:
    term = term.lower()
    return any(
        term in (value or "").lower()
        for value in (payment.description, payment.tenant_name, payment.property_name)
    )


def audit_generated(store: Store, actor: User, payments: List[Payment]) -> None:
    for p in payments:
        log_audit(
            store.db,
            actor=actor,
            action="generated",
            entity_type="payment",
            entity_id=p.id,
            status=p.status,
            due_date=p.due_date,
            property_id=p.property_id,
            source="system",
            description=p.description,
        )


def audit_reconciled(store: Store, actor: User, payments: List[Payment]) -> None:
    for p in payments:
        log_audit(
            store.db,
            actor=actor,
            action="reconciled",
            entity_type="payment",
            entity_id=p.id,
            status=p.status,
            due_date=p.due_date,
            property_id=p.property_id,
            source="system",
            description=f"Payment overdue: {p.description}",
        )


@router.get("", response_model=List[PaymentListItemOut])
def list_payments(
    store: Store = Depends(get_store),
    status: Optional[PaymentStatus] = Query(None),
    tenant_id: Optional[str] = Query(None),
    property_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="description, tenant name or property name"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
):
    """
    Payments as stored. Overdue status comes from reconciliation
    (POST /payments/reconcile or the dashboard load), never from comparing
    due_date here.
    """
    filters = {}
    if status:
        filters["status"] = status
    if tenant_id:
        filters["tenant_id"] = tenant_id
    if property_id:
        filters["property_id"] = property_id

    items = attach_names(store, store.query(Payment, filters, order_by=(Payment.due_date.desc(),)))
    if search and search.strip():
        items = [p for p in items if _matches(p, search.strip())]
    return items[offset:offset + limit]


@router.post("/generate", response_model=PaymentBatchOut)
def generate_payments(
    store: Store = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    """Create next-cycle payments for active tenants that have none. Safe to call repeatedly."""
    created = lifecycle.generate_monthly_payments(store)
    audit_generated(store, current_user, created)
    return {"count": len(created), "payments": created}


@router.post("/reconcile", response_model=PaymentBatchOut)
def reconcile_payments(
    store: Store = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    """Mark pending payments past their due date as overdue. Safe to call repeatedly."""
    updated = lifecycle.reconcile_overdue_payments(store)
    audit_reconciled(store, current_user, updated)
    return {"count": len(updated), "payments": updated}


@router.get("/{payment_id}", response_model=PaymentListItemOut)
def get_payment(payment_id: str, store: Store = Depends(get_store)):
    return attach_names(store, [store.get(Payment, payment_id)])[0]


@router.post("/{payment_id}/status", response_model=PaymentOut)
def set_payment_status(
    payment_id: str,
    payload: PaymentStatusUpdate,
    store: Store = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    """
    Change a payment's status.

    - paid: paid_date defaults to today
    - pending/overdue: paid_date is cleared
    - paid -> pending/overdue needs "override": true
    """
    payment = lifecycle.set_payment_status(
        store,
        payment_id,
        payload.status,
        paid_date=payload.paid_date,
        override=payload.override,
        expected_version=payload.version,
    )
    log_audit(
        store.db,
        actor=current_user,
        action="updated",
        entity_type="payment",
        entity_id=payment.id,
        status=payment.status,
        due_date=payment.due_date,
        property_id=payment.property_id,
        description=f"Payment marked {payment.status}" + (" (manual override)" if payload.override else ""),
    )
    return payment


@router.patch("/{payment_id}", response_model=PaymentOut)
def correct_payment(
    payment_id: str,
    payload: PaymentCorrection,
    store: Store = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    """Correct amount / due date of an unpaid payment."""
    payment = lifecycle.correct_payment(
        store,
        payment_id,
        amount=payload.amount,
        due_date=payload.due_date,
        expected_version=payload.version,
    )
    log_audit(
        store.db,
        actor=current_user,
        action="updated",
        entity_type="payment",
        entity_id=payment.id,
        status=payment.status,
        due_date=payment.due_date,
        property_id=payment.property_id,
        description=f"Payment corrected: amount={payment.amount} due={payment.due_date.isoformat()}",
    )
    return payment
