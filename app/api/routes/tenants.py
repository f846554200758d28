from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from app.api.deps import get_store
from app.core.auth import get_current_user, User
from app.core.audit import log_audit
from app.core.errors import InconsistentStateError
from app.models.payment import Payment
from app.models.property import Property
from app.models.tenant import Tenant
from app.schemas.payment import PaymentOut
from app.schemas.tenant import (
    TenantCreate,
    TenantCreatedOut,
    TenantDetailOut,
    TenantOut,
    TenantUpdate,
)
from app.services import payments as lifecycle
from app.services import tenancy
from app.services.store import Store

router = APIRouter(prefix="/tenants", tags=["tenants"])


def attach_property_names(store: Store, tenants: List[Tenant]) -> List[Tenant]:
    property_ids = [t.property_id for t in tenants if t.property_id]
    names = {}
    if property_ids:
        names = {p.id: p.name for p in store.query(Property, {"id": property_ids})}
    for tenant in tenants:
        tenant.property_name = names.get(tenant.property_id)
    return tenants


@router.get("", response_model=List[TenantOut])
def list_tenants(
    store: Store = Depends(get_store),
    property_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="search by name/email"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    filters = {"property_id": property_id} if property_id else {}
    where = []
    if search:
        like = f"%{search.strip()}%"
        where.append(Tenant.name.ilike(like) | Tenant.email.ilike(like))

    tenants = store.query(Tenant, filters, where=where, order_by=(Tenant.name,))
    return attach_property_names(store, tenants[offset:offset + limit])


@router.get("/{tenant_id}", response_model=TenantDetailOut)
def get_tenant(tenant_id: str, store: Store = Depends(get_store)):
    """Tenant with its payment history, newest due date first."""
    tenant = attach_property_names(store, [store.get(Tenant, tenant_id)])[0]
    tenant.payments = store.query(Payment, {"tenant_id": tenant.id}, order_by=(Payment.due_date.desc(),))
    return tenant


@router.post("", response_model=TenantCreatedOut, status_code=201)
def create_tenant(
    payload: TenantCreate,
    store: Store = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    """
    Onboard a tenant onto an available property. The property becomes
    occupied and the first rent payment is generated.
    """
    tenant, payment = tenancy.create_tenant(store, payload.model_dump())
    log_audit(
        store.db,
        actor=current_user,
        action="created",
        entity_type="tenant",
        entity_id=tenant.id,
        property_id=tenant.property_id,
        description=f"Tenant created: {tenant.name}",
    )
    log_audit(
        store.db,
        actor=current_user,
        action="generated",
        entity_type="payment",
        entity_id=payment.id,
        status=payment.status,
        due_date=payment.due_date,
        property_id=payment.property_id,
        description=payment.description,
    )
    return {"tenant": attach_property_names(store, [tenant])[0], "payment": payment}


@router.patch("/{tenant_id}", response_model=TenantOut)
def update_tenant(
    tenant_id: str,
    payload: TenantUpdate,
    store: Store = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    data = payload.model_dump(exclude_unset=True)
    tenant = tenancy.update_tenant(store, tenant_id, data)
    log_audit(
        store.db,
        actor=current_user,
        action="updated",
        entity_type="tenant",
        entity_id=tenant.id,
        property_id=tenant.property_id,
        description=f"Tenant updated: {', '.join(sorted(data)) or 'no changes'}",
    )
    return attach_property_names(store, [tenant])[0]


@router.delete("/{tenant_id}", status_code=204)
def delete_tenant(
    tenant_id: str,
    store: Store = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    """
    Delete the tenant and all of its payments, then mark its property available.
    A 409 means the tenant is gone but the property could not be released.
    """
    try:
        removed = tenancy.delete_tenant(store, tenant_id)
    except InconsistentStateError as e:
        log_audit(
            store.db,
            actor=current_user,
            action="deleted",
            entity_type="tenant",
            entity_id=tenant_id,
            status="inconsistent",
            description=e.message,
            risk_level="high",
        )
        raise
    log_audit(
        store.db,
        actor=current_user,
        action="deleted",
        entity_type="tenant",
        entity_id=tenant_id,
        description=f"Tenant deleted with {removed} payments",
    )
    return None


@router.post("/{tenant_id}/payments/generate", response_model=PaymentOut)
def generate_tenant_payment(
    tenant_id: str,
    store: Store = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    """Next payment for this tenant; returns the existing one if already generated."""
    tenant = store.get(Tenant, tenant_id)
    if not tenant.property_id:
        raise InconsistentStateError("Tenant is not assigned to a property")
    prop = store.get(Property, tenant.property_id)
    payment = lifecycle.generate_initial_payment(store, tenant, prop)
    log_audit(
        store.db,
        actor=current_user,
        action="generated",
        entity_type="payment",
        entity_id=payment.id,
        status=payment.status,
        due_date=payment.due_date,
        property_id=payment.property_id,
        description=payment.description,
    )
    return payment
