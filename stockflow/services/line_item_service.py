from __future__ import annotations

from datetime import date
from decimal import Decimal
import logging
from typing import Any, Iterable

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from stockflow.core import clock
from stockflow.core.config import settings
from stockflow.core.errors import (
    InvalidStateFailure,
    NotFoundFailure,
    ValidationFailure,
)
from stockflow.crud import line_item as item_crud
from stockflow.crud import lot as lot_crud
from stockflow.db.session import unit_of_work
from stockflow.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from stockflow.services.money import to_money
from stockflow.services.product_lookup import ProductLookup, SqlProductLookup

logger = logging.getLogger(__name__)


def payload_dict(payload: Any, *, exclude_unset: bool = False) -> dict:
    if isinstance(payload, BaseModel):
        return payload.model_dump(exclude_unset=exclude_unset)
    return dict(payload or {})


def recompute_total(db: Session, order: PurchaseOrder) -> Decimal:
    """Rewrite order.total_amount as the sum of its line totals."""
    db.flush()
    items = item_crud.list_items(db, order.id)
    order.total_amount = sum((item.line_total for item in items), Decimal("0.00"))
    db.flush()
    return order.total_amount


def days_to_expiry(item: PurchaseOrderItem, as_of: date | None = None) -> int:
    return (item.expiry_date - (as_of or clock.today())).days


def is_expired(item: PurchaseOrderItem, as_of: date | None = None) -> bool:
    return days_to_expiry(item, as_of) < 0


def is_expiring_soon(item: PurchaseOrderItem, days: int | None = None, as_of: date | None = None) -> bool:
    window = settings.LOT_EXPIRY_WARNING_DAYS if days is None else days
    remaining = days_to_expiry(item, as_of)
    return 0 <= remaining <= window


class LineItemService:
    def __init__(self, db: Session, products: ProductLookup | None = None):
        self.db = db
        self.products = products or SqlProductLookup(db)

    # ---- field rules -------------------------------------------------

    @staticmethod
    def _quantity(value) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValidationFailure(
                message="quantity must be an integer of at least 1.",
                entity="purchase_order_item",
                field="quantity",
                constraint="min_1",
            )
        return value

    @staticmethod
    def _unit_price(value) -> Decimal:
        return to_money(
            value,
            entity="purchase_order_item",
            field="unit_price",
            minimum=settings.MIN_UNIT_PRICE,
        )

    @staticmethod
    def _expiry(value) -> date:
        if not isinstance(value, date):
            raise ValidationFailure(
                message="expiry_date is required.",
                entity="purchase_order_item",
                field="expiry_date",
                constraint="required",
            )
        if value <= clock.today():
            raise ValidationFailure(
                message="expiry_date must be in the future.",
                entity="purchase_order_item",
                field="expiry_date",
                constraint="future_date",
            )
        return value

    def _product(self, product_id) -> int:
        if isinstance(product_id, bool) or not isinstance(product_id, int):
            raise ValidationFailure(
                message="product_id is required.",
                entity="purchase_order_item",
                field="product_id",
                constraint="required",
            )
        if self.products.get(product_id) is None:
            raise NotFoundFailure(
                message=f"Product {product_id} not found or inactive.",
                entity="product",
                entity_id=product_id,
                field="product_id",
            )
        return product_id

    # ---- order guards ------------------------------------------------

    def _mutable_order(self, order_id: int) -> PurchaseOrder:
        stmt = select(PurchaseOrder).where(PurchaseOrder.id == order_id).with_for_update()
        order = self.db.execute(stmt).scalar_one_or_none()
        if order is None:
            raise NotFoundFailure(
                message=f"Purchase order {order_id} not found.",
                entity="purchase_order",
                entity_id=order_id,
            )
        if order.status.is_terminal:
            raise InvalidStateFailure(
                message=f"Items of a {order.status.value} order cannot be changed.",
                entity="purchase_order",
                entity_id=order_id,
                field="status",
                constraint="not_terminal",
            )
        return order

    def _owned_item(self, order_id: int, item_id: int) -> PurchaseOrderItem:
        item = item_crud.get_item(self.db, item_id)
        if item is None or item.order_id != order_id:
            raise NotFoundFailure(
                message=f"Item {item_id} not found on purchase order {order_id}.",
                entity="purchase_order_item",
                entity_id=item_id,
            )
        return item

    # ---- operations --------------------------------------------------

    def _add(self, order: PurchaseOrder, drafts: Iterable[Any]) -> list[PurchaseOrderItem]:
        drafts = list(drafts or [])
        if not drafts:
            raise ValidationFailure(
                message="At least one item is required.",
                entity="purchase_order_item",
                field="items",
                constraint="non_empty",
            )

        existing = {item.product_id for item in item_crud.list_items(self.db, order.id)}
        seen: set[int] = set()
        created: list[PurchaseOrderItem] = []
        for draft in drafts:
            data = payload_dict(draft)
            product_id = self._product(data.get("product_id"))
            if product_id in seen or product_id in existing:
                raise ValidationFailure(
                    message=f"Product {product_id} is already on purchase order {order.id}.",
                    entity="purchase_order_item",
                    field="product_id",
                    constraint="uq_purchase_order_item_product",
                )
            seen.add(product_id)
            item = PurchaseOrderItem(
                order_id=order.id,
                product_id=product_id,
                quantity=self._quantity(data.get("quantity")),
                unit_price=self._unit_price(data.get("unit_price")),
                expiry_date=self._expiry(data.get("expiry_date")),
            )
            self.db.add(item)
            created.append(item)

        recompute_total(self.db, order)
        logger.info(
            "po_items_added order_id=%s count=%s total=%s",
            order.id,
            len(created),
            order.total_amount,
        )
        return created

    def add_items(self, order_id: int, items: Iterable[Any]) -> list[PurchaseOrderItem]:
        """Add a batch of items. Either every item is added or none is."""
        with unit_of_work(self.db):
            order = self._mutable_order(order_id)
            return self._add(order, items)

    def update_item(self, order_id: int, item_id: int, patch: Any) -> PurchaseOrderItem:
        with unit_of_work(self.db):
            order = self._mutable_order(order_id)
            item = self._owned_item(order_id, item_id)
            data = payload_dict(patch, exclude_unset=True)

            if "order_id" in data and data["order_id"] != item.order_id:
                raise ValidationFailure(
                    message="order_id of an item cannot be changed.",
                    entity="purchase_order_item",
                    entity_id=item_id,
                    field="order_id",
                    constraint="immutable",
                )
            if "product_id" in data and data["product_id"] != item.product_id:
                raise ValidationFailure(
                    message="product_id of an item cannot be changed.",
                    entity="purchase_order_item",
                    entity_id=item_id,
                    field="product_id",
                    constraint="immutable",
                )

            if "quantity" in data:
                quantity = self._quantity(data["quantity"])
                received = lot_crud.sum_received_for_product(self.db, order_id, item.product_id)
                if quantity < received:
                    raise ValidationFailure(
                        message=(
                            f"Quantity {quantity} is below the {received} unit(s) "
                            f"already received for product {item.product_id}."
                        ),
                        entity="purchase_order_item",
                        entity_id=item_id,
                        field="quantity",
                        constraint="not_below_received",
                    )
                item.quantity = quantity
            if "unit_price" in data:
                item.unit_price = self._unit_price(data["unit_price"])
            if "expiry_date" in data and data["expiry_date"] != item.expiry_date:
                item.expiry_date = self._expiry(data["expiry_date"])

            recompute_total(self.db, order)
            logger.info(
                "po_item_updated order_id=%s item_id=%s total=%s",
                order_id,
                item_id,
                order.total_amount,
            )
            return item

    def remove_item(self, order_id: int, item_id: int) -> None:
        with unit_of_work(self.db):
            order = self._mutable_order(order_id)
            item = self._owned_item(order_id, item_id)
            if lot_crud.sum_received_for_product(self.db, order_id, item.product_id) > 0:
                raise InvalidStateFailure(
                    message=f"Item {item_id} has received lots and cannot be removed.",
                    entity="purchase_order_item",
                    entity_id=item_id,
                    constraint="lots_received",
                )
            self.db.delete(item)
            recompute_total(self.db, order)
            logger.info(
                "po_item_removed order_id=%s item_id=%s total=%s",
                order_id,
                item_id,
                order.total_amount,
            )

    def list_items(self, order_id: int) -> list[PurchaseOrderItem]:
        if self.db.get(PurchaseOrder, order_id) is None:
            raise NotFoundFailure(
                message=f"Purchase order {order_id} not found.",
                entity="purchase_order",
                entity_id=order_id,
            )
        return item_crud.list_items(self.db, order_id)
