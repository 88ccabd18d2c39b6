from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from stockflow.core.errors import InvalidStateFailure, NotFoundFailure, ValidationFailure
from stockflow.models.order_status import OrderStatus
from stockflow.models.purchase_order import PurchaseOrder
from stockflow.schemas.purchase_order import POHeaderCreate, POHeaderUpdate
from stockflow.services.purchase_order_service import PurchaseOrderService


def test_create_order_with_items_computes_total(reference_data, item):
    payload = POHeaderCreate(
        status="PEND",
        order_date=date(2025, 1, 10),
        expected_date=date(2025, 1, 20),
        total_amount=Decimal("999.00"),
        items=[item(7, 3, "12.50"), item(8, 2, "3.20")],
    )

    order = PurchaseOrderService(reference_data).create(payload, user_email="Buyer@Clinic.local")

    assert order.id is not None
    assert order.status == OrderStatus.PENDING
    assert order.total_amount == Decimal("43.90")
    assert order.created_by == "buyer@clinic.local"
    assert [i.product_id for i in order.items] == [7, 8]


def test_audit_actor_stamps(reference_data):
    service = PurchaseOrderService(reference_data)
    draft = {"status": "PENDING", "order_date": date(2025, 1, 10), "expected_date": date(2025, 1, 20)}

    anonymous = service.create(draft, user_email="   ")
    assert anonymous.created_by == "system@local"
    assert anonymous.last_changed_by == "system@local"

    service.transition(anonymous.id, "PROCESSING", user_email=" Ops@Clinic.local ")
    reference_data.refresh(anonymous)
    assert anonymous.created_by == "system@local"
    assert anonymous.last_changed_by == "ops@clinic.local"

    service.update(anonymous.id, POHeaderUpdate(notes="no actor"))
    reference_data.refresh(anonymous)
    assert anonymous.last_changed_by == "ops@clinic.local"


def test_create_without_items_keeps_draft_total(make_order):
    order = make_order(total_amount=Decimal("15.5"))
    assert order.total_amount == Decimal("15.50")


def test_create_rejects_non_pending_status(make_order):
    with pytest.raises(ValidationFailure) as exc:
        make_order(status="PROCESSING")
    assert exc.value.field == "status"


def test_create_rejects_future_order_date(make_order):
    with pytest.raises(ValidationFailure) as exc:
        make_order(order_date=date(2025, 1, 16), expected_date=date(2025, 1, 30))
    assert exc.value.field == "order_date"


def test_create_rejects_expected_before_order_date(make_order):
    with pytest.raises(ValidationFailure) as exc:
        make_order(expected_date=date(2025, 1, 9))
    assert exc.value.field == "expected_date"


def test_create_rejects_delivery_outside_window(make_order):
    with pytest.raises(ValidationFailure) as exc:
        make_order(delivery_date=date(2025, 1, 21))
    assert exc.value.field == "delivery_date"


def test_create_with_invalid_item_leaves_nothing_behind(make_order, reference_data, item):
    with pytest.raises(ValidationFailure):
        make_order(items=[item(7, 3, "12.50"), item(8, 0, "3.20")])
    assert reference_data.query(PurchaseOrder).count() == 0


def test_transition_follows_graph(make_order, reference_data):
    order = make_order()
    service = PurchaseOrderService(reference_data)

    order = service.transition(order.id, "ANDA")
    assert order.status == OrderStatus.PROCESSING

    order = service.transition(order.id, OrderStatus.COMPLETED)
    assert order.status == OrderStatus.COMPLETED

    with pytest.raises(InvalidStateFailure):
        service.transition(order.id, OrderStatus.PENDING)


def test_transition_to_same_status_is_noop(make_order, reference_data):
    order = make_order()
    before = order.updated_at
    again = PurchaseOrderService(reference_data).transition(order.id, "Pending")
    assert again.status == OrderStatus.PENDING
    assert again.updated_at == before


def test_transition_cannot_skip_processing(make_order, reference_data):
    order = make_order()
    with pytest.raises(InvalidStateFailure):
        PurchaseOrderService(reference_data).transition(order.id, "CONC")


def test_canceled_order_is_frozen(make_order, reference_data):
    order = make_order()
    service = PurchaseOrderService(reference_data)
    service.transition(order.id, "CANC")

    with pytest.raises(InvalidStateFailure):
        service.update(order.id, POHeaderUpdate(notes="late change"))
    with pytest.raises(InvalidStateFailure):
        service.transition(order.id, OrderStatus.PROCESSING)


def test_update_on_completed_order_is_rejected(make_order, reference_data):
    order = make_order()
    service = PurchaseOrderService(reference_data)
    service.transition(order.id, OrderStatus.PROCESSING)
    service.transition(order.id, OrderStatus.COMPLETED)

    with pytest.raises(InvalidStateFailure):
        service.update(order.id, POHeaderUpdate(notes="too late"))


def test_update_rejects_order_date_change(make_order, reference_data):
    order = make_order()
    service = PurchaseOrderService(reference_data)

    with pytest.raises(InvalidStateFailure) as exc:
        service.update(order.id, POHeaderUpdate(order_date=date(2025, 1, 11)))
    assert exc.value.field == "order_date"

    same = service.update(order.id, POHeaderUpdate(order_date=date(2025, 1, 10), notes="ok"))
    assert same.notes == "ok"


def test_update_rejects_total_amount(make_order, reference_data):
    order = make_order()
    with pytest.raises(ValidationFailure) as exc:
        PurchaseOrderService(reference_data).update(order.id, {"total_amount": Decimal("1.00")})
    assert exc.value.field == "total_amount"


def test_update_validates_dates_against_stored_values(make_order, reference_data):
    order = make_order()
    service = PurchaseOrderService(reference_data)

    with pytest.raises(ValidationFailure):
        service.update(order.id, POHeaderUpdate(expected_date=date(2025, 1, 5)))

    updated = service.update(
        order.id,
        POHeaderUpdate(expected_date=date(2025, 1, 25), delivery_date=date(2025, 1, 22)),
    )
    assert updated.expected_date == date(2025, 1, 25)
    assert updated.delivery_date == date(2025, 1, 22)


def test_update_unknown_order(reference_data):
    with pytest.raises(NotFoundFailure):
        PurchaseOrderService(reference_data).update(404, POHeaderUpdate(notes="x"))


def test_query_helpers(make_order, reference_data, item):
    first = make_order(items=[item(7, 3, "12.50")])
    second = make_order(
        order_date=date(2025, 1, 2),
        expected_date=date(2025, 1, 12),
        items=[item(8, 10, "3.20")],
    )
    third = make_order(order_date=date(2025, 1, 14), expected_date=date(2025, 1, 14))
    service = PurchaseOrderService(reference_data)
    service.transition(third.id, "CANC")

    assert [o.id for o in service.list_by_value_range(Decimal("30"), Decimal("40"))] == [first.id, second.id]
    assert [o.id for o in service.list_by_expected_date(date(2025, 1, 20))] == [first.id]
    assert [o.id for o in service.list_by_order_period(date(2025, 1, 1), date(2025, 1, 5))] == [second.id]
    assert [o.id for o in service.list_overdue()] == [second.id]
    assert service.count_by_status("PENDING") == 2
    assert service.count_by_status("cancelled") == 1
    assert [o.id for o in service.list_orders(status="CANCELED")] == [third.id]

    with pytest.raises(ValidationFailure):
        service.list_by_order_period(date(2025, 2, 1), date(2025, 1, 1))


def test_legacy_status_synonyms():
    assert OrderStatus.parse("pend") == OrderStatus.PENDING
    assert OrderStatus.parse("PROC") == OrderStatus.PROCESSING
    assert OrderStatus.parse("Completed") == OrderStatus.COMPLETED
    with pytest.raises(ValueError):
        OrderStatus.parse("SHIPPED")
