from __future__ import annotations

import os
import sys
from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import importlib

fastapi_app = importlib.import_module("stockflow.main").app
from stockflow.core import clock
from stockflow.db.base import Base
from stockflow.db.session import get_db
from stockflow.models.reference import LedgerAccount, Product
from stockflow.models.users import AppUser
from stockflow.services.credential_service import hash_password

# Ensure all models are registered with SQLAlchemy metadata
import stockflow.models  # noqa: F401

TODAY = date(2025, 1, 15)
INVENTORY_ACCOUNT_ID = 1
PAYABLE_ACCOUNT_ID = 2
MANAGER_LOGIN = "manager"
MANAGER_PASSWORD = "s3cret-pass"


@pytest.fixture(scope="session")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, _connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture(scope="function")
def db_session(engine):
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def client(engine, db_session):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def _override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    with TestClient(fastapi_app) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def frozen_today(monkeypatch):
    monkeypatch.setattr(clock, "today", lambda: TODAY)
    return TODAY


def seed_reference_data(db):
    db.add_all(
        [
            Product(id=7, sku="SKU-7", name="Saline 0.9% 500ml", unit_price=Decimal("12.50"), is_active=True),
            Product(id=8, sku="SKU-8", name="Gauze pads", unit_price=Decimal("3.20"), is_active=True),
            Product(id=9, sku="SKU-9", name="Discontinued syringe", unit_price=None, is_active=False),
            LedgerAccount(id=INVENTORY_ACCOUNT_ID, code="1.1.4", name="Inventory", is_active=True),
            LedgerAccount(id=PAYABLE_ACCOUNT_ID, code="2.1.1", name="Suppliers payable", is_active=True),
            AppUser(
                login=MANAGER_LOGIN,
                email="manager@clinic.local",
                password_hash=hash_password(MANAGER_PASSWORD, iterations=1000),
                is_active=True,
            ),
        ]
    )
    db.commit()


@pytest.fixture(scope="function")
def reference_data(db_session):
    seed_reference_data(db_session)
    return db_session


@pytest.fixture(scope="function")
def make_order(reference_data):
    """Create a PENDING order dated 2025-01-10, optionally with items."""
    from stockflow.services.purchase_order_service import PurchaseOrderService

    def _make(items=None, **overrides):
        draft = {
            "status": "PENDING",
            "order_date": date(2025, 1, 10),
            "expected_date": date(2025, 1, 20),
            "items": items or [],
        }
        draft.update(overrides)
        return PurchaseOrderService(reference_data).create(draft, user_email="buyer@clinic.local")

    return _make


def item_draft(product_id=7, quantity=3, unit_price="12.50", expiry=date(2026, 1, 1)):
    return {
        "product_id": product_id,
        "quantity": quantity,
        "unit_price": Decimal(unit_price),
        "expiry_date": expiry,
    }


@pytest.fixture
def item():
    return item_draft
