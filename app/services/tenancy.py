"""
Property and tenant writes that keep the occupancy invariant:

    property.status == "occupied"  <=>  exactly one tenant has property_id == property.id
                                        (and property.tenant_id points at it)

Tenant and property rows live in different tables and the store commits
each write separately, so a failure between the two writes is reported as
InconsistentStateError rather than ignored.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

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
from app.services import billing
from app.services.payments import cascade_delete_tenant, generate_initial_payment, validate_due_day
from app.services.store import Store

logger = logging.getLogger(__name__)

AVAILABLE = "available"
OCCUPIED = "occupied"

PROPERTY_REQUIRED = ("name", "address", "city", "state", "type")
TENANT_REQUIRED = ("name", "email", "phone", "national_id")
# derived from tenant assignment
PROPERTY_READONLY = ("status", "tenant_id", "user_id", "version")


def _require(data: Dict[str, Any], fields, partial: bool = False) -> None:
    """partial: only check the fields present in data (PATCH payloads)."""
    missing = [f for f in fields if (f in data or not partial) and data.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _validate_property_fields(data: Dict[str, Any]) -> None:
    if "due_day" in data:
        validate_due_day(data["due_day"])
    if "rent_amount" in data and (data["rent_amount"] is None or data["rent_amount"] <= 0):
        raise ValidationError("rent_amount must be positive")
    for f in ("bedrooms", "bathrooms", "area"):
        if data.get(f) is not None and data[f] < 0:
            raise ValidationError(f"{f} cannot be negative")


def _validate_lease(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date is None or end_date is None:
        raise ValidationError("start_date and end_date are required")
    if end_date < start_date:
        raise ValidationError("end_date cannot be before start_date")


# --- properties ---

def create_property(store: Store, data: Dict[str, Any]) -> Property:
    _require(data, PROPERTY_REQUIRED)
    if "due_day" not in data or "rent_amount" not in data:
        raise ValidationError("Missing required fields: rent_amount, due_day")
    _validate_property_fields(data)
    billing.ensure_can_add_property(store)

    record = {k: v for k, v in data.items() if k not in PROPERTY_READONLY}
    record.update(status=AVAILABLE, tenant_id=None)
    prop = store.insert(Property, record)
    logger.info("Property %s created for user %s", prop.id, store.get_current_user_id())
    return prop


def update_property(
    store: Store, property_id: str, data: Dict[str, Any], expected_version: Optional[int] = None
) -> Property:
    """Plain field updates. rent_amount changes do not touch existing payments."""
    readonly = [k for k in data if k in PROPERTY_READONLY]
    if readonly:
        raise ValidationError(f"Fields cannot be set directly: {', '.join(readonly)}")
    _require(data, PROPERTY_REQUIRED, partial=True)
    _validate_property_fields(data)
    return store.update(Property, property_id, data, expected_version=expected_version)


def delete_property(store: Store, property_id: str) -> None:
    prop = store.get(Property, property_id)
    if prop.status == OCCUPIED or prop.tenant_id or store.count(Tenant, {"property_id": prop.id}):
        raise InconsistentStateError("Property has a tenant; remove the tenant first")
    if store.count(Payment, {"property_id": prop.id}):
        raise InconsistentStateError("Property has payment history and cannot be deleted")
    store.delete(Property, prop.id)
    logger.info("Property %s deleted", prop.id)


# --- tenants ---

def _occupy(store: Store, prop: Property, tenant: Tenant) -> Property:
    try:
        return store.update(Property, prop.id, {"status": OCCUPIED, "tenant_id": tenant.id})
    except (NotFoundError, TransientIOError, ConflictError) as e:
        logger.warning("Tenant %s saved but property %s not marked occupied: %s", tenant.id, prop.id, e.message)
        raise InconsistentStateError(
            f"Tenant saved but the property could not be marked occupied: {e.message}"
        ) from e


def _release(store: Store, property_id: str, tenant_id: str) -> None:
    try:
        prop = store.get(Property, property_id)
        if prop.tenant_id not in (None, tenant_id):
            logger.warning("Property %s belongs to tenant %s; not releasing", prop.id, prop.tenant_id)
            return
        store.update(Property, prop.id, {"status": AVAILABLE, "tenant_id": None})
    except (NotFoundError, TransientIOError, ConflictError) as e:
        logger.warning("Property %s not released from tenant %s: %s", property_id, tenant_id, e.message)
        raise InconsistentStateError(
            f"Tenant updated but the previous property could not be marked available: {e.message}"
        ) from e


def _available_property(store: Store, property_id: str, tenant_id: Optional[str] = None) -> Property:
    prop = store.get(Property, property_id)
    if prop.status == OCCUPIED or prop.tenant_id not in (None, tenant_id):
        raise InconsistentStateError("Property is already occupied")
    return prop


def create_tenant(
    store: Store, data: Dict[str, Any], today: Optional[date] = None
) -> Tuple[Tenant, Payment]:
    """
    Onboard a tenant: insert it, mark its property occupied, then generate the
    first rent payment. Returns (tenant, payment).
    """
    _require(data, TENANT_REQUIRED + ("property_id",))
    _validate_lease(data.get("start_date"), data.get("end_date"))
    prop = _available_property(store, data["property_id"])

    tenant = store.insert(Tenant, dict(data))
    prop = _occupy(store, prop, tenant)
    payment = generate_initial_payment(store, tenant, prop, today)
    logger.info("Tenant %s onboarded to property %s", tenant.id, prop.id)
    return tenant, payment


def update_tenant(
    store: Store, tenant_id: str, data: Dict[str, Any], today: Optional[date] = None
) -> Tenant:
    """
    Field updates; a property_id change moves the occupancy from the old
    property to the new one and bills the new property's next cycle.
    Existing payments keep the references they were generated with.
    """
    tenant = store.get(Tenant, tenant_id)
    _require(data, TENANT_REQUIRED, partial=True)
    _validate_lease(data.get("start_date", tenant.start_date), data.get("end_date", tenant.end_date))

    old_property_id = tenant.property_id
    reassign = "property_id" in data and data["property_id"] != old_property_id
    new_prop = None
    if reassign and data["property_id"]:
        new_prop = _available_property(store, data["property_id"], tenant.id)

    tenant = store.update(Tenant, tenant.id, data)
    if not reassign:
        return tenant

    if old_property_id:
        _release(store, old_property_id, tenant.id)
    if new_prop is not None:
        new_prop = _occupy(store, new_prop, tenant)
        generate_initial_payment(store, tenant, new_prop, today)
    logger.info("Tenant %s moved from property %s to %s", tenant.id, old_property_id, tenant.property_id)
    return tenant


def delete_tenant(store: Store, tenant_id: str) -> int:
    return cascade_delete_tenant(store, tenant_id)


def check_occupancy(store: Store) -> List[dict]:
    """Properties whose stored status disagrees with the tenants pointing at them."""
    tenants = store.query(Tenant, where=(Tenant.property_id.isnot(None),))
    by_property: Dict[str, List[str]] = {}
    for t in tenants:
        by_property.setdefault(t.property_id, []).append(t.id)

    problems = []
    for prop in store.query(Property, order_by=(Property.name,)):
        tenant_ids = by_property.get(prop.id, [])
        if len(tenant_ids) > 1:
            problem = "multiple tenants"
        elif prop.status == OCCUPIED and not tenant_ids:
            problem = "occupied without tenant"
        elif prop.status == AVAILABLE and tenant_ids:
            problem = "available with tenant"
        elif tenant_ids and prop.tenant_id != tenant_ids[0]:
            problem = "back-reference mismatch"
        else:
            continue
        problems.append(
            {"property_id": prop.id, "status": prop.status, "tenant_ids": tenant_ids, "problem": problem}
        )
    return problems
