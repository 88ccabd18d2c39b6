from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from stockflow.core.config import settings
from stockflow.core.errors import (
    AccessDeniedFailure,
    FatalFailure,
    InvalidStateFailure,
    NotFoundFailure,
)
from stockflow.crud import line_item as item_crud
from stockflow.models.ledger_entry import LedgerEntry
from stockflow.models.lot import Lot
from stockflow.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from stockflow.models.stock_balance import StockBalance
from stockflow.services.credential_service import CredentialDecision
from stockflow.services.ledger_service import LedgerService
from stockflow.services.lot_service import LotService
from stockflow.services.order_cascade_service import CascadeStep, OrderCascadeService
from stockflow.services.purchase_order_service import PurchaseOrderService
from stockflow.services.stock_service import StockService

MANAGER = {"login": "manager", "password": "s3cret-pass"}


def _counts(db):
    return (
        db.query(PurchaseOrder).count(),
        db.query(PurchaseOrderItem).count(),
        db.query(Lot).count(),
        db.query(StockBalance).count(),
        db.query(LedgerEntry).count(),
    )


@pytest.fixture
def received_order(make_order, reference_data, item):
    order = make_order(items=[item(7, 3, "12.50"), item(8, 2, "3.20")])
    PurchaseOrderService(reference_data).transition(order.id, "PROCESSING")
    lot = LotService(reference_data).receive_lot(order.id, 7, 3, date(2026, 1, 1))
    LedgerService(reference_data).post_balanced_entry(
        None, 1, 2, Decimal("37.50"), date(2025, 1, 15), order_id=order.id
    )
    return order.id, lot.id


def test_cascade_deletes_everything(received_order, reference_data):
    order_id, lot_id = received_order
    StockService(reference_data).adjust_stock(7, lot_id, -3)

    report = OrderCascadeService(reference_data).delete_order(order_id, reason="duplicate", **MANAGER)

    assert report.completed_step == CascadeStep.DONE
    assert report.actor == "manager@clinic.local"
    assert report.reason == "duplicate"
    assert report.ledger_entries_deleted == 2
    assert report.lots_deleted == 1
    assert report.stock_balances_deleted == 1
    assert report.items_deleted == 2
    assert _counts(reference_data) == (0, 0, 0, 0, 0)


def test_cascade_with_allocated_stock_touches_nothing(received_order, reference_data):
    order_id, _ = received_order
    before = _counts(reference_data)

    with pytest.raises(InvalidStateFailure) as exc:
        OrderCascadeService(reference_data).delete_order(order_id, **MANAGER)
    assert exc.value.constraint == "stock_still_allocated"

    # ledger rows are deleted before lots are checked; the rollback restores them
    assert _counts(reference_data) == before


def test_completed_order_cannot_be_deleted(received_order, reference_data):
    order_id, _ = received_order
    PurchaseOrderService(reference_data).transition(order_id, "COMPLETED")
    before = _counts(reference_data)

    with pytest.raises(InvalidStateFailure):
        OrderCascadeService(reference_data).delete_order(order_id, **MANAGER)
    assert _counts(reference_data) == before
    assert before == (1, 2, 1, 1, 2)


def test_canceled_order_can_be_deleted(make_order, reference_data, item):
    order = make_order(items=[item(7)])
    PurchaseOrderService(reference_data).transition(order.id, "CANCELED")
    report = OrderCascadeService(reference_data).delete_order(order.id, **MANAGER)
    assert report.items_deleted == 1


def test_unknown_order(reference_data):
    with pytest.raises(NotFoundFailure):
        OrderCascadeService(reference_data).delete_order(404, **MANAGER)


def test_bad_credentials_deny_deletion(make_order, reference_data, item):
    order = make_order(items=[item(7)])
    with pytest.raises(AccessDeniedFailure):
        OrderCascadeService(reference_data).delete_order(order.id, login="manager", password="wrong")
    assert _counts(reference_data)[:2] == (1, 1)


def test_injected_verifier_and_disabled_guard(make_order, reference_data, monkeypatch):
    class _Deny:
        def verify(self, login, password):
            return CredentialDecision(allowed=False)

    order = make_order()
    with pytest.raises(AccessDeniedFailure):
        OrderCascadeService(reference_data, verifier=_Deny()).delete_order(order.id, **MANAGER)

    monkeypatch.setattr(settings, "ORDER_DELETE_REQUIRES_CREDENTIALS", False)
    report = OrderCascadeService(reference_data, verifier=_Deny()).delete_order(
        order.id, user_email="ops@clinic.local"
    )
    assert report.actor == "ops@clinic.local"


def test_storage_failure_is_fatal_and_rolled_back(received_order, reference_data, monkeypatch):
    order_id, lot_id = received_order
    StockService(reference_data).adjust_stock(7, lot_id, -3)
    before = _counts(reference_data)

    def _boom(db, order_id):
        raise OperationalError("DELETE FROM purchase_order_item", {}, Exception("disk I/O error"))

    monkeypatch.setattr(item_crud, "delete_items_for_order", _boom)

    with pytest.raises(FatalFailure) as exc:
        OrderCascadeService(reference_data).delete_order(order_id, **MANAGER)
    assert exc.value.step == CascadeStep.LINE_ITEMS.value
    assert _counts(reference_data) == before
