from __future__ import annotations

from datetime import date, timedelta
import logging

from sqlalchemy.orm import Session

from stockflow.core import clock
from stockflow.core.config import settings
from stockflow.core.errors import (
    InvalidStateFailure,
    NotFoundFailure,
    ValidationFailure,
)
from stockflow.core.flow_logging import flow_info
from stockflow.crud import line_item as item_crud
from stockflow.crud import lot as lot_crud
from stockflow.crud import purchase_order as order_crud
from stockflow.crud import stock_balance as balance_crud
from stockflow.db.session import unit_of_work
from stockflow.models.lot import Lot
from stockflow.models.stock_balance import StockBalance

logger = logging.getLogger(__name__)

EXPIRED = "EXPIRED"
EXPIRING_SOON = "EXPIRING_SOON"
VALID = "VALID"


def expiry_status(expiry: date, *, as_of: date | None = None, warning_days: int | None = None) -> str:
    today = as_of or clock.today()
    window = settings.LOT_EXPIRY_WARNING_DAYS if warning_days is None else warning_days
    if expiry < today:
        return EXPIRED
    if expiry <= today + timedelta(days=window):
        return EXPIRING_SOON
    return VALID


class LotService:
    def __init__(self, db: Session):
        self.db = db

    def _receive(self, order_id: int, product_id: int, quantity: int, expiry_date: date) -> Lot:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValidationFailure(
                message="Lot quantity must be an integer of at least 1.",
                entity="lot",
                field="quantity",
                constraint="min_1",
            )

        order = order_crud.get_order(self.db, order_id)
        if order is None:
            raise NotFoundFailure(
                message=f"Purchase order {order_id} not found.",
                entity="purchase_order",
                entity_id=order_id,
            )
        if order.status.is_terminal:
            raise InvalidStateFailure(
                message=f"Cannot receive goods on a {order.status.value} order.",
                entity="purchase_order",
                entity_id=order_id,
                field="status",
                constraint="not_terminal",
            )

        item = item_crud.find_item_by_product(self.db, order_id, product_id)
        if item is None:
            raise ValidationFailure(
                message=f"Product {product_id} is not a line item of order {order_id}.",
                entity="lot",
                field="product_id",
                constraint="ordered_product",
            )

        received = lot_crud.sum_received_for_product(self.db, order_id, product_id)
        if received + quantity > item.quantity:
            raise ValidationFailure(
                message=(
                    f"Receiving {quantity} would exceed the ordered quantity "
                    f"({received} of {item.quantity} already received)."
                ),
                entity="lot",
                field="quantity",
                constraint="within_ordered_quantity",
            )

        if expiry_date < clock.today():
            raise ValidationFailure(
                message="Lot expiry date cannot be in the past.",
                entity="lot",
                field="expiry_date",
                constraint="not_expired",
            )

        lot = Lot(
            order_id=order_id,
            product_id=product_id,
            expiry_date=expiry_date,
            quantity=quantity,
            received_quantity=quantity,
        )
        self.db.add(lot)
        self.db.flush()
        self.db.add(StockBalance(product_id=product_id, lot_id=lot.id, quantity=quantity))
        self.db.flush()
        flow_info(
            logger,
            "lot_received lot_id=%s order_id=%s product_id=%s quantity=%s",
            lot.id,
            order_id,
            product_id,
            quantity,
            category="stock",
        )
        return lot

    def receive_lot(self, order_id: int, product_id: int, quantity: int, expiry_date: date) -> Lot:
        """Create a lot and its stock balance row in one transaction."""
        with unit_of_work(self.db):
            return self._receive(order_id, product_id, quantity, expiry_date)

    def remove_lot(self, lot_id: int) -> None:
        with unit_of_work(self.db):
            lot = lot_crud.get_lot(self.db, lot_id, for_update=True)
            if lot is None:
                raise NotFoundFailure(message=f"Lot {lot_id} not found.", entity="lot", entity_id=lot_id)
            allocated = sum(
                int(b.quantity or 0) for b in balance_crud.list_balances_for_lots(self.db, [lot_id])
            )
            if allocated > 0:
                raise InvalidStateFailure(
                    message=f"Lot {lot_id} still has {allocated} unit(s) of stock allocated.",
                    entity="lot",
                    entity_id=lot_id,
                    field="quantity",
                    constraint="stock_still_allocated",
                )
            balance_crud.delete_balances_for_lots(self.db, [lot_id])
            lot_crud.delete_lots(self.db, [lot_id])
            flow_info(logger, "lot_removed lot_id=%s", lot_id, category="stock")

    def get(self, lot_id: int) -> Lot:
        lot = lot_crud.get_lot(self.db, lot_id)
        if lot is None:
            raise NotFoundFailure(message=f"Lot {lot_id} not found.", entity="lot", entity_id=lot_id)
        return lot

    def list_for_order(self, order_id: int) -> list[Lot]:
        return lot_crud.list_lots_for_order(self.db, order_id)

    def sum_quantity_for_order(self, order_id: int) -> int:
        return lot_crud.sum_quantity_for_order(self.db, order_id)

    def list_expired(self) -> list[Lot]:
        return lot_crud.list_expired(self.db, clock.today())

    def list_expiring_soon(self, days: int | None = None) -> list[Lot]:
        window = settings.LOT_EXPIRY_WARNING_DAYS if days is None else days
        if window < 0:
            raise ValidationFailure(
                message="days must not be negative.",
                entity="lot",
                field="days",
                constraint="non_negative",
            )
        today = clock.today()
        return lot_crud.list_expiring_between(self.db, today, today + timedelta(days=window))

    @staticmethod
    def expiry_status(lot: Lot) -> str:
        return expiry_status(lot.expiry_date)
