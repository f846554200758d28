"""
Pytest fixtures: a fresh in-memory SQLite database per test, a user-scoped
Store on top of it, and factories for properties/tenants.
"""
import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_URL", "https://project.supabase.co")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base
import app.models.audit_log  # noqa: F401
import app.models.payment  # noqa: F401
import app.models.property  # noqa: F401
import app.models.subscriber  # noqa: F401
import app.models.tenant  # noqa: F401
from app.models.subscriber import Subscriber
from app.services import tenancy
from app.services.store import Store

USER_ID = "landlord-1"
OTHER_USER_ID = "landlord-2"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return Store(db, user_id=USER_ID)


@pytest.fixture
def other_store(db):
    return Store(db, user_id=OTHER_USER_ID)


@pytest.fixture
def premium(store):
    """Current user on a paid plan (no property limit)."""
    return store.insert(Subscriber, {"email": "owner@example.com", "subscribed": True, "subscription_tier": "premium"})


def property_data(**overrides):
    data = {
        "name": "Apt 101",
        "address": "Rua das Flores, 10",
        "city": "Sao Paulo",
        "state": "SP",
        "zip_code": "01000-000",
        "type": "apartment",
        "bedrooms": 2,
        "bathrooms": 1,
        "area": 60,
        "rent_amount": Decimal("1500.00"),
        "due_day": 5,
    }
    data.update(overrides)
    return data


def tenant_data(property_id, **overrides):
    data = {
        "name": "Maria Silva",
        "email": "maria@example.com",
        "phone": "11999990000",
        "national_id": "12345678901",
        "property_id": property_id,
        "start_date": date(2024, 1, 1),
        "end_date": date(2024, 12, 31),
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_property(store):
    def _make(**overrides):
        return tenancy.create_property(store, property_data(**overrides))
    return _make


@pytest.fixture
def make_tenant(store):
    """Onboards a tenant; returns (tenant, first payment)."""
    def _make(prop, today=date(2024, 1, 10), **overrides):
        return tenancy.create_tenant(store, tenant_data(prop.id, **overrides), today=today)
    return _make
