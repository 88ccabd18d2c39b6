from __future__ import annotations

from datetime import date
from decimal import Decimal
import logging
from typing import Any

from sqlalchemy.orm import Session

from stockflow.core import clock
from stockflow.core.errors import (
    InvalidStateFailure,
    NotFoundFailure,
    ValidationFailure,
)
from stockflow.crud import purchase_order as order_crud
from stockflow.db.session import unit_of_work
from stockflow.models.order_status import OrderStatus
from stockflow.models.purchase_order import PurchaseOrder
from stockflow.services.line_item_service import LineItemService, payload_dict
from stockflow.services.money import to_money
from stockflow.services.product_lookup import ProductLookup, SqlProductLookup

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELED},
    OrderStatus.PROCESSING: {OrderStatus.COMPLETED, OrderStatus.CANCELED},
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELED: set(),
}

PATCHABLE_FIELDS = {"status", "order_date", "expected_date", "delivery_date", "notes"}


def _parse_status(value) -> OrderStatus:
    try:
        return OrderStatus.parse(value)
    except ValueError as exc:
        raise ValidationFailure(
            message=str(exc),
            entity="purchase_order",
            field="status",
            constraint="order_status",
        ) from exc


def _check_dates(order_date, expected_date, delivery_date) -> None:
    if not isinstance(expected_date, date):
        raise ValidationFailure(
            message="expected_date is required.",
            entity="purchase_order",
            field="expected_date",
            constraint="required",
        )
    if expected_date < order_date:
        raise ValidationFailure(
            message="expected_date cannot be before order_date.",
            entity="purchase_order",
            field="expected_date",
            constraint="ck_purchase_order_expected_after_order",
        )
    if delivery_date is not None and not (order_date <= delivery_date <= expected_date):
        raise ValidationFailure(
            message="delivery_date must fall between order_date and expected_date.",
            entity="purchase_order",
            field="delivery_date",
            constraint="within_order_window",
        )


class PurchaseOrderService:
    def __init__(self, db: Session, products: ProductLookup | None = None):
        self.db = db
        self.products = products or SqlProductLookup(db)

    def _locked(self, order_id: int) -> PurchaseOrder:
        order = order_crud.get_order(self.db, order_id, for_update=True)
        if order is None:
            raise NotFoundFailure(
                message=f"Purchase order {order_id} not found.",
                entity="purchase_order",
                entity_id=order_id,
            )
        return order

    @staticmethod
    def _check_transition(order: PurchaseOrder, target: OrderStatus) -> None:
        if target not in ALLOWED_TRANSITIONS[order.status]:
            raise InvalidStateFailure(
                message=f"Cannot move purchase order from {order.status.value} to {target.value}.",
                entity="purchase_order",
                entity_id=order.id,
                field="status",
                constraint="status_transition",
            )

    def create(self, draft: Any, user_email: str | None = None) -> PurchaseOrder:
        """
        Create a PENDING order, optionally with its first items.

        The stored total is the sum of the item line totals. A total sent by
        the caller is kept only for an order created without items.
        """
        data = payload_dict(draft)
        with unit_of_work(self.db):
            if data.get("status") is None:
                raise ValidationFailure(
                    message="status is required.",
                    entity="purchase_order",
                    field="status",
                    constraint="required",
                )
            status = _parse_status(data["status"])
            if status != OrderStatus.PENDING:
                raise ValidationFailure(
                    message="Purchase orders must be created as PENDING.",
                    entity="purchase_order",
                    field="status",
                    constraint="initial_status",
                )

            order_date = data.get("order_date")
            if not isinstance(order_date, date):
                raise ValidationFailure(
                    message="order_date is required.",
                    entity="purchase_order",
                    field="order_date",
                    constraint="required",
                )
            if order_date > clock.today():
                raise ValidationFailure(
                    message="order_date cannot be in the future.",
                    entity="purchase_order",
                    field="order_date",
                    constraint="not_future",
                )
            _check_dates(order_date, data.get("expected_date"), data.get("delivery_date"))

            items = list(data.get("items") or [])
            total = Decimal("0.00")
            if not items and data.get("total_amount") is not None:
                total = to_money(
                    data["total_amount"],
                    entity="purchase_order",
                    field="total_amount",
                    minimum=Decimal("0.00"),
                )

            order = PurchaseOrder(
                status=status,
                order_date=order_date,
                expected_date=data["expected_date"],
                delivery_date=data.get("delivery_date"),
                notes=data.get("notes"),
                total_amount=total,
            )
            order.stamp_created(user_email or data.get("created_by"))
            self.db.add(order)
            self.db.flush()

            if items:
                LineItemService(self.db, self.products).add_items(order.id, items)

            logger.info(
                "po_created order_id=%s items=%s total=%s user=%s",
                order.id,
                len(items),
                order.total_amount,
                order.created_by,
            )
            return order

    def update(self, order_id: int, patch: Any, user_email: str | None = None) -> PurchaseOrder:
        data = payload_dict(patch, exclude_unset=True)
        with unit_of_work(self.db):
            order = self._locked(order_id)
            if order.status.is_terminal:
                raise InvalidStateFailure(
                    message=f"A {order.status.value} purchase order cannot be changed.",
                    entity="purchase_order",
                    entity_id=order_id,
                    field="status",
                    constraint="not_terminal",
                )

            unknown = sorted(set(data) - PATCHABLE_FIELDS)
            if unknown:
                raise ValidationFailure(
                    message=f"Field(s) {', '.join(unknown)} cannot be patched.",
                    entity="purchase_order",
                    entity_id=order_id,
                    field=unknown[0],
                    constraint="read_only",
                )

            if "order_date" in data and data["order_date"] != order.order_date:
                raise InvalidStateFailure(
                    message="order_date cannot be changed after creation.",
                    entity="purchase_order",
                    entity_id=order_id,
                    field="order_date",
                    constraint="immutable",
                )

            expected = data.get("expected_date", order.expected_date)
            delivery = data.get("delivery_date", order.delivery_date)
            _check_dates(order.order_date, expected, delivery)

            if data.get("status") is not None:
                target = _parse_status(data["status"])
                if target != order.status:
                    self._check_transition(order, target)
                    order.status = target

            order.expected_date = expected
            order.delivery_date = delivery
            if "notes" in data:
                order.notes = data["notes"]
            order.stamp_changed(user_email)
            self.db.flush()
            logger.info("po_updated order_id=%s fields=%s", order_id, sorted(data))
            return order

    def transition(self, order_id: int, new_status, user_email: str | None = None) -> PurchaseOrder:
        target = _parse_status(new_status)
        with unit_of_work(self.db):
            order = self._locked(order_id)
            if order.status == target:
                return order
            self._check_transition(order, target)
            previous = order.status
            order.status = target
            order.stamp_changed(user_email)
            self.db.flush()
            logger.info(
                "po_status_changed order_id=%s from=%s to=%s",
                order_id,
                previous.value,
                target.value,
            )
            return order

    def get(self, order_id: int) -> PurchaseOrder:
        order = order_crud.get_order(self.db, order_id)
        if order is None:
            raise NotFoundFailure(
                message=f"Purchase order {order_id} not found.",
                entity="purchase_order",
                entity_id=order_id,
            )
        return order

    def list_orders(
        self,
        status=None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[PurchaseOrder]:
        parsed = _parse_status(status) if status is not None else None
        return order_crud.list_orders(self.db, skip=skip, limit=limit, status=parsed)

    def list_by_value_range(
        self,
        min_total: Decimal | None = None,
        max_total: Decimal | None = None,
    ) -> list[PurchaseOrder]:
        if min_total is not None and max_total is not None and min_total > max_total:
            raise ValidationFailure(
                message="min_total cannot exceed max_total.",
                entity="purchase_order",
                field="min_total",
                constraint="min_le_max",
            )
        return order_crud.list_by_value_range(self.db, min_total, max_total)

    def list_by_expected_date(self, expected: date) -> list[PurchaseOrder]:
        return order_crud.list_by_expected_date(self.db, expected)

    def list_by_order_period(self, start: date, end: date) -> list[PurchaseOrder]:
        if start > end:
            raise ValidationFailure(
                message="start must not be after end.",
                entity="purchase_order",
                field="start",
                constraint="start_before_end",
            )
        return order_crud.list_by_order_period(self.db, start, end)

    def list_overdue(self) -> list[PurchaseOrder]:
        return order_crud.list_overdue(self.db, clock.today())

    def count_by_status(self, status) -> int:
        return order_crud.count_by_status(self.db, _parse_status(status))
