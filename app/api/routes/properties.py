from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from app.api.deps import get_store
from app.core.auth import get_current_user, User
from app.core.audit import log_audit
from app.models.property import Property
from app.models.tenant import Tenant
from app.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyOut,
    OccupancyProblemOut,
)
from app.services import tenancy
from app.services.store import Store

router = APIRouter(prefix="/properties", tags=["properties"])


def property_filters(status: Optional[str], search: Optional[str]):
    filters = {}
    where = []
    if status:
        filters["status"] = status

    # basic search: name/address/city
    if search:
        like = f"%{search.strip()}%"
        where.append(
            Property.name.ilike(like)
            | Property.address.ilike(like)
            | Property.city.ilike(like)
        )
    return filters, where


def attach_tenant_names(store: Store, props: List[Property]) -> List[Property]:
    tenant_ids = [p.tenant_id for p in props if p.tenant_id]
    names = {}
    if tenant_ids:
        names = {t.id: t.name for t in store.query(Tenant, {"id": tenant_ids})}
    for prop in props:
        prop.tenant_name = names.get(prop.tenant_id)
    return props


@router.get("", response_model=List[PropertyOut])
def list_properties(
    store: Store = Depends(get_store),
    status: Optional[str] = Query(None, description="available|occupied"),
    search: Optional[str] = Query(None, description="search by name/address/city"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
):
    filters, where = property_filters(status, search)
    props = store.query(Property, filters, where=where, order_by=(Property.created_at.desc(),))
    return attach_tenant_names(store, props[offset:offset + limit])


@router.get("/occupancy-check", response_model=List[OccupancyProblemOut])
def occupancy_check(store: Store = Depends(get_store)):
    """Properties whose status disagrees with the tenants assigned to them (should be empty)."""
    return tenancy.check_occupancy(store)


@router.get("/{property_id}", response_model=PropertyOut)
def get_property(property_id: str, store: Store = Depends(get_store)):
    prop = store.get(Property, property_id)
    return attach_tenant_names(store, [prop])[0]


@router.post("", response_model=PropertyOut, status_code=201)
def create_property(
    payload: PropertyCreate,
    store: Store = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    """
    Register a property. Always starts as available; the free plan is capped
    at FREE_TIER_PROPERTY_LIMIT properties (402 beyond that).
    """
    prop = tenancy.create_property(store, payload.model_dump())
    log_audit(
        store.db,
        actor=current_user,
        action="created",
        entity_type="property",
        entity_id=prop.id,
        status=prop.status,
        property_id=prop.id,
        description=f"Property created: {prop.name}",
    )
    prop.tenant_name = None
    return prop


@router.patch("/{property_id}", response_model=PropertyOut)
def update_property(
    property_id: str,
    payload: PropertyUpdate,
    store: Store = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    data = payload.model_dump(exclude_unset=True)
    version = data.pop("version", None)

    prop = tenancy.update_property(store, property_id, data, expected_version=version)
    log_audit(
        store.db,
        actor=current_user,
        action="updated",
        entity_type="property",
        entity_id=prop.id,
        status=prop.status,
        property_id=prop.id,
        description=f"Property updated: {', '.join(sorted(data)) or 'no changes'}",
    )
    return attach_tenant_names(store, [prop])[0]


@router.delete("/{property_id}", status_code=204)
def delete_property(
    property_id: str,
    store: Store = Depends(get_store),
    current_user: User = Depends(get_current_user),
):
    """Only vacant properties without payment history can be deleted (409 otherwise)."""
    tenancy.delete_property(store, property_id)
    log_audit(
        store.db,
        actor=current_user,
        action="deleted",
        entity_type="property",
        entity_id=property_id,
        property_id=property_id,
        description="Property deleted",
    )
    return None
