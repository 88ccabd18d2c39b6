from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy.exc import IntegrityError

from stockflow.core.errors import (
    InsufficientStockFailure,
    InvalidStateFailure,
    NotFoundFailure,
    ValidationFailure,
)
from stockflow.models.lot import Lot
from stockflow.models.stock_balance import StockBalance
from stockflow.services.lot_service import EXPIRED, EXPIRING_SOON, VALID, LotService
from stockflow.services.purchase_order_service import PurchaseOrderService
from stockflow.services.stock_service import StockService


@pytest.fixture
def processing_order(make_order, reference_data, item):
    order = make_order(items=[item(7, 5, "12.50"), item(8, 10, "3.20")])
    PurchaseOrderService(reference_data).transition(order.id, "PROCESSING")
    return order


def test_receive_lot_creates_mirrored_balance(processing_order, reference_data):
    lot = LotService(reference_data).receive_lot(processing_order.id, 7, 3, date(2026, 1, 1))

    balance = StockService(reference_data).get_balance(7, lot.id)
    assert lot.quantity == 3
    assert lot.received_quantity == 3
    assert balance.quantity == 3


def test_receive_lot_rules(processing_order, reference_data):
    service = LotService(reference_data)

    with pytest.raises(NotFoundFailure):
        service.receive_lot(404, 7, 1, date(2026, 1, 1))
    with pytest.raises(ValidationFailure) as exc:
        service.receive_lot(processing_order.id, 7, 0, date(2026, 1, 1))
    assert exc.value.field == "quantity"
    with pytest.raises(ValidationFailure) as exc:
        service.receive_lot(processing_order.id, 9, 1, date(2026, 1, 1))
    assert exc.value.constraint == "ordered_product"
    with pytest.raises(ValidationFailure) as exc:
        service.receive_lot(processing_order.id, 7, 1, date(2025, 1, 14))
    assert exc.value.field == "expiry_date"

    service.receive_lot(processing_order.id, 7, 4, date(2026, 1, 1))
    with pytest.raises(ValidationFailure) as exc:
        service.receive_lot(processing_order.id, 7, 2, date(2026, 1, 1))
    assert exc.value.constraint == "within_ordered_quantity"

    assert reference_data.query(Lot).count() == 1


def test_receive_lot_on_terminal_order(processing_order, reference_data):
    PurchaseOrderService(reference_data).transition(processing_order.id, "COMPLETED")
    with pytest.raises(InvalidStateFailure):
        LotService(reference_data).receive_lot(processing_order.id, 7, 1, date(2026, 1, 1))


def test_adjust_stock_mirrors_lot(processing_order, reference_data):
    lot = LotService(reference_data).receive_lot(processing_order.id, 7, 3, date(2026, 1, 1))
    stock = StockService(reference_data)

    balance = stock.adjust_stock(7, lot.id, -2)
    assert balance.quantity == 1
    reference_data.refresh(lot)
    assert lot.quantity == 1
    assert lot.received_quantity == 3


def test_negative_adjustment_beyond_on_hand_leaves_quantity(processing_order, reference_data):
    lot = LotService(reference_data).receive_lot(processing_order.id, 7, 3, date(2026, 1, 1))
    stock = StockService(reference_data)

    with pytest.raises(InsufficientStockFailure) as exc:
        stock.adjust_stock(7, lot.id, -4)
    assert exc.value.available == 3
    assert exc.value.requested == 4

    assert stock.get_balance(7, lot.id).quantity == 3
    reference_data.refresh(lot)
    assert lot.quantity == 3


def test_product_level_balance_is_created_on_positive_delta(reference_data):
    stock = StockService(reference_data)

    with pytest.raises(InsufficientStockFailure):
        stock.adjust_stock(8, None, -1)

    stock.adjust_stock(8, None, 5)
    stock.adjust_stock(8, None, 2)
    rows = reference_data.query(StockBalance).filter(StockBalance.product_id == 8).all()
    assert len(rows) == 1
    assert rows[0].lot_id is None
    assert rows[0].quantity == 7


def test_second_product_level_row_is_rejected(reference_data):
    reference_data.add(StockBalance(product_id=7, lot_id=None, quantity=1))
    reference_data.commit()

    reference_data.add(StockBalance(product_id=7, lot_id=None, quantity=2))
    with pytest.raises(IntegrityError):
        reference_data.commit()
    reference_data.rollback()

    assert len(StockService(reference_data).list_balances(7)) == 1


def test_adjust_stock_rejects_bad_input(processing_order, reference_data):
    lot = LotService(reference_data).receive_lot(processing_order.id, 7, 3, date(2026, 1, 1))
    stock = StockService(reference_data)

    with pytest.raises(ValidationFailure):
        stock.adjust_stock(7, lot.id, 0)
    with pytest.raises(ValidationFailure):
        stock.adjust_stock(8, lot.id, 1)
    with pytest.raises(NotFoundFailure):
        stock.adjust_stock(7, 404, 1)
    with pytest.raises(NotFoundFailure):
        stock.adjust_stock(9, None, 1)


def test_stock_queries(processing_order, reference_data):
    lots = LotService(reference_data)
    stock = StockService(reference_data)
    first = lots.receive_lot(processing_order.id, 7, 3, date(2026, 1, 1))
    lots.receive_lot(processing_order.id, 8, 10, date(2026, 1, 1))
    stock.adjust_stock(7, None, 2)
    stock.adjust_stock(7, first.id, -3)

    assert stock.on_hand_total(7) == 2
    assert [b.quantity for b in stock.list_balances(7)] == [0, 2]
    assert [(b.product_id, b.quantity) for b in stock.list_low_stock(2)] == [(7, 0), (7, 2)]
    assert [b.lot_id for b in stock.list_zero_stock()] == [first.id]
    with pytest.raises(ValidationFailure):
        stock.list_low_stock(0)


def test_remove_lot_requires_drained_stock(processing_order, reference_data):
    lots = LotService(reference_data)
    lot = lots.receive_lot(processing_order.id, 7, 3, date(2026, 1, 1))
    lot_id = lot.id

    with pytest.raises(InvalidStateFailure) as exc:
        lots.remove_lot(lot_id)
    assert exc.value.constraint == "stock_still_allocated"

    StockService(reference_data).adjust_stock(7, lot_id, -3)
    lots.remove_lot(lot_id)

    assert reference_data.query(Lot).count() == 0
    assert reference_data.query(StockBalance).count() == 0
    with pytest.raises(NotFoundFailure):
        lots.get(lot_id)


def test_lot_expiry_queries(processing_order, reference_data):
    lots = LotService(reference_data)
    soon = lots.receive_lot(processing_order.id, 7, 1, date(2025, 2, 1))
    later = lots.receive_lot(processing_order.id, 8, 1, date(2026, 1, 1))

    assert [lot.id for lot in lots.list_expiring_soon()] == [soon.id]
    assert [lot.id for lot in lots.list_expiring_soon(days=400)] == [soon.id, later.id]
    assert lots.list_expired() == []
    assert lots.expiry_status(soon) == EXPIRING_SOON
    assert lots.expiry_status(later) == VALID
    assert lots.sum_quantity_for_order(processing_order.id) == 2
    assert [lot.id for lot in lots.list_for_order(processing_order.id)] == [soon.id, later.id]


def test_expired_lots_are_reported(processing_order, reference_data, monkeypatch):
    from stockflow.core import clock

    lots = LotService(reference_data)
    lot = lots.receive_lot(processing_order.id, 7, 1, date(2025, 2, 1))

    monkeypatch.setattr(clock, "today", lambda: date(2025, 3, 1))
    assert [l.id for l in lots.list_expired()] == [lot.id]
    assert lots.expiry_status(lot) == EXPIRED
