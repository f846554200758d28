"""
Payment lifecycle: due-date math, idempotent generation, overdue
reconciliation, status transitions and the tenant cascade delete.

Status machine:

    pending --(due_date passed)--> overdue      reconcile_overdue_payments
    pending --(marked paid)------> paid         set_payment_status
    overdue --(marked paid)------> paid         set_payment_status
    overdue --(manual)-----------> pending      set_payment_status
    paid    --(override only)----> pending | overdue

Every operation takes an explicit `today` (defaults to the current UTC date)
so callers and tests control the calendar.
"""
import logging
from calendar import monthrange
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import or_

from app.core.errors import (
    ConflictError,
    InconsistentStateError,
    NotFoundError,
    TransientIOError,
    ValidationError,
)
from app.models.payment import Payment
from app.models.property import Property
from app.models.tenant import Tenant
from app.services.store import Store

logger = logging.getLogger(__name__)

PENDING = "pending"
PAID = "paid"
OVERDUE = "overdue"
STATUSES = (PENDING, PAID, OVERDUE)
OPEN_STATUSES = (PENDING, OVERDUE)

# target statuses reachable without override, keyed by current status
TRANSITIONS = {
    PENDING: {PENDING, PAID, OVERDUE},
    OVERDUE: {OVERDUE, PAID, PENDING},
    PAID: {PAID},
}
OVERRIDE_TRANSITIONS = {
    PAID: {PENDING, OVERDUE},
}


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def validate_due_day(due_day) -> int:
    if isinstance(due_day, bool) or not isinstance(due_day, int) or not 1 <= due_day <= 31:
        raise ValidationError(f"due_day must be an integer between 1 and 31, got {due_day!r}")
    return due_day


def _clamped(year: int, month: int, day: int) -> date:
    """date(year, month, day), with day clamped to the month's length (31 -> 28/29/30)."""
    _, last_day = monthrange(year, month)
    return date(year, month, min(day, last_day))


def compute_due_date(due_day: int, today: Optional[date] = None) -> date:
    """
    Next due date for a property billed on `due_day`.

    Day `due_day` of the current month, unless that is today or already
    passed, in which case the same day next month. Always strictly after today.
    """
    validate_due_day(due_day)
    today = today or utc_today()
    candidate = _clamped(today.year, today.month, due_day)
    if candidate <= today:
        if today.month == 12:
            candidate = _clamped(today.year + 1, 1, due_day)
        else:
            candidate = _clamped(today.year, today.month + 1, due_day)
    return candidate


def build_description(property_name: str, due_date: date) -> str:
    return f"Rent {property_name} - {due_date:%m/%Y}"


def _payments_in_cycle(
    store: Store,
    tenant_id: str,
    property_id: str,
    due_date: date,
    statuses: Iterable[str] = STATUSES,
    exclude_id: Optional[str] = None,
) -> List[Payment]:
    """
    Payments of the tenant for this property whose due date falls in the same
    calendar month as due_date. A tenant who moved keeps the old property's
    payments; they do not count toward the new property's cycle.
    """
    first = due_date.replace(day=1)
    last = _clamped(due_date.year, due_date.month, 31)
    where = [Payment.due_date >= first, Payment.due_date <= last]
    if exclude_id:
        where.append(Payment.id != exclude_id)
    return store.query(
        Payment,
        {"tenant_id": tenant_id, "property_id": property_id, "status": list(statuses)},
        where=where,
        order_by=(Payment.due_date,),
    )


def _create_payment(store: Store, tenant: Tenant, prop: Property, due_date: date) -> Payment:
    payment = store.insert(
        Payment,
        {
            "tenant_id": tenant.id,
            "property_id": prop.id,
            "amount": prop.rent_amount,
            "due_date": due_date,
            "paid_date": None,
            "status": PENDING,
            "description": build_description(prop.name, due_date),
        },
    )
    logger.info(
        "Payment %s generated for tenant %s (property %s) due %s",
        payment.id, tenant.id, prop.id, due_date.isoformat(),
    )
    return payment


def generate_initial_payment(
    store: Store, tenant: Tenant, prop: Property, today: Optional[date] = None
) -> Payment:
    """
    First rent payment for a newly assigned tenant.

    Idempotent: if the tenant already has a pending/overdue payment for this
    property in the computed due month, that payment is returned and nothing
    is inserted.
    """
    validate_due_day(prop.due_day)
    if tenant.property_id != prop.id or prop.tenant_id != tenant.id:
        raise InconsistentStateError(
            f"Tenant {tenant.id} and property {prop.id} are not linked to each other"
        )

    due_date = compute_due_date(prop.due_day, today)
    existing = _payments_in_cycle(store, tenant.id, prop.id, due_date, OPEN_STATUSES)
    if existing:
        logger.info(
            "Tenant %s already has payment %s for %s; not generating another",
            tenant.id, existing[0].id, f"{due_date:%m/%Y}",
        )
        return existing[0]

    return _create_payment(store, tenant, prop, due_date)


def generate_monthly_payments(store: Store, today: Optional[date] = None) -> List[Payment]:
    """
    Create the next payment for every active tenant that has none for its
    upcoming due cycle. Missed past cycles are not backfilled.

    Active = linked to a property and lease not ended. A due date after the
    lease end is not billed. Tenants whose property link is broken are
    skipped with a warning instead of failing the whole batch.
    """
    today = today or utc_today()
    tenants = store.query(
        Tenant,
        where=(Tenant.property_id.isnot(None), Tenant.end_date >= today),
        order_by=(Tenant.created_at,),
    )
    if not tenants:
        return []

    properties = {p.id: p for p in store.query(Property, {"id": [t.property_id for t in tenants]})}

    created: List[Payment] = []
    for tenant in tenants:
        prop = properties.get(tenant.property_id)
        if prop is None or prop.tenant_id != tenant.id:
            logger.warning(
                "Skipping tenant %s: property %s does not reference it back",
                tenant.id, tenant.property_id,
            )
            continue

        due_date = compute_due_date(prop.due_day, today)
        if due_date > tenant.end_date:
            continue
        if _payments_in_cycle(store, tenant.id, prop.id, due_date):
            continue

        created.append(_create_payment(store, tenant, prop, due_date))

    if created:
        logger.info("Generated %s monthly payments", len(created))
    return created


def reconcile_overdue_payments(store: Store, today: Optional[date] = None) -> List[Payment]:
    """pending + due_date < today -> overdue. Paid payments are never touched."""
    today = today or utc_today()
    stale = store.query(
        Payment,
        {"status": PENDING},
        where=(Payment.due_date < today,),
        order_by=(Payment.due_date,),
    )
    updated = [store.update(Payment, p.id, {"status": OVERDUE}) for p in stale]
    if updated:
        logger.info("Marked %s payments overdue as of %s", len(updated), today.isoformat())
    return updated


def set_payment_status(
    store: Store,
    payment_id: str,
    new_status: str,
    paid_date: Optional[date] = None,
    override: bool = False,
    expected_version: Optional[int] = None,
    today: Optional[date] = None,
) -> Payment:
    """
    Move a payment to new_status. status and paid_date are written together.

    - to paid: paid_date defaults to today
    - to pending/overdue: paid_date is cleared; an explicit paid_date is only
      accepted together with override=True
    - leaving paid requires override=True (a deliberate manual correction)
    """
    if new_status not in STATUSES:
        raise ValidationError(f"Unknown payment status {new_status!r}")

    payment = store.get(Payment, payment_id)
    current = payment.status
    allowed = TRANSITIONS.get(current, set())
    if new_status not in allowed:
        if override and new_status in OVERRIDE_TRANSITIONS.get(current, set()):
            logger.info("Manual override: payment %s %s -> %s", payment.id, current, new_status)
        else:
            raise ValidationError(
                f"Cannot change payment from {current} to {new_status} without a manual override"
            )

    if new_status == PAID:
        if paid_date is None and current == PAID:
            paid_date = payment.paid_date
        fields = {"status": PAID, "paid_date": paid_date or today or utc_today()}
    else:
        if paid_date is not None and not override:
            raise ValidationError("paid_date can only be set on a non-paid payment with a manual override")
        fields = {"status": new_status, "paid_date": paid_date}

    return store.update(Payment, payment.id, fields, expected_version=expected_version)


def correct_payment(
    store: Store,
    payment_id: str,
    amount: Optional[Decimal] = None,
    due_date: Optional[date] = None,
    expected_version: Optional[int] = None,
    today: Optional[date] = None,
) -> Payment:
    """
    Fix amount and/or due date of a payment that has not been paid yet.

    A new due date must not land in a month the tenant is already billed for
    on this property. The description follows the new month, and an overdue
    payment moved to today or later goes back to pending.
    """
    payment = store.get(Payment, payment_id)
    if payment.status == PAID:
        raise ValidationError("A paid payment cannot be corrected; reset it to pending first")
    if amount is not None and amount <= 0:
        raise ValidationError("amount must be positive")

    fields = {}
    if amount is not None:
        fields["amount"] = amount
    if due_date is not None and due_date != payment.due_date:
        clash = _payments_in_cycle(
            store, payment.tenant_id, payment.property_id, due_date, exclude_id=payment.id
        )
        if clash:
            raise ValidationError(
                f"Tenant already has payment {clash[0].id} due {due_date:%m/%Y} for this property"
            )
        prop = store.get(Property, payment.property_id)
        fields["due_date"] = due_date
        fields["description"] = build_description(prop.name, due_date)
        if payment.status == OVERDUE and due_date >= (today or utc_today()):
            fields["status"] = PENDING
    if not fields:
        return payment
    return store.update(Payment, payment.id, fields, expected_version=expected_version)


def cascade_delete_tenant(store: Store, tenant_id: str) -> int:
    """
    Delete the tenant's payments, then the tenant, then release its property.

    Completed steps are not rolled back. If the property cannot be released
    the caller gets InconsistentStateError; the property is left occupied.
    Returns the number of payments removed.
    """
    tenant = store.get(Tenant, tenant_id)
    property_id = tenant.property_id

    removed = store.delete_where(Payment, {"tenant_id": tenant_id})
    store.delete(Tenant, tenant_id)
    logger.info("Deleted tenant %s and %s payments", tenant_id, removed)

    try:
        criteria = [Property.tenant_id == tenant_id]
        if property_id:
            criteria.append(Property.id == property_id)
        targets = store.query(Property, where=(or_(*criteria),))

        if property_id and property_id not in {p.id for p in targets}:
            raise NotFoundError(f"Property {property_id} not found")

        for prop in targets:
            if prop.tenant_id not in (None, tenant_id):
                logger.warning(
                    "Property %s is occupied by tenant %s, not %s; leaving it as is",
                    prop.id, prop.tenant_id, tenant_id,
                )
                continue
            store.update(Property, prop.id, {"status": "available", "tenant_id": None})
    except (NotFoundError, TransientIOError, ConflictError) as e:
        logger.warning(
            "Tenant %s deleted but property %s could not be released: %s",
            tenant_id, property_id, e.message,
        )
        raise InconsistentStateError(
            f"Tenant deleted but its property could not be marked available: {e.message}"
        ) from e

    return removed
