from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from stockflow.core.errors import (
    InsufficientStockFailure,
    NotFoundFailure,
    ValidationFailure,
)
from stockflow.core.flow_logging import flow_info
from stockflow.crud import lot as lot_crud
from stockflow.crud import stock_balance as balance_crud
from stockflow.db.session import unit_of_work
from stockflow.models.stock_balance import StockBalance
from stockflow.services.product_lookup import ProductLookup, SqlProductLookup

logger = logging.getLogger(__name__)


class StockService:
    def __init__(self, db: Session, products: ProductLookup | None = None):
        self.db = db
        self.products = products or SqlProductLookup(db)

    @staticmethod
    def _require_int(value, field: str) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationFailure(
                message=f"{field} must be an integer.",
                entity="stock_balance",
                field=field,
                constraint="integer",
            )
        return value

    def _apply_delta(self, product_id: int, lot_id: int | None, delta: int) -> StockBalance:
        delta = self._require_int(delta, "delta")
        if delta == 0:
            raise ValidationFailure(
                message="delta must be non-zero.",
                entity="stock_balance",
                field="delta",
                constraint="non_zero",
            )

        lot = None
        if lot_id is not None:
            lot = lot_crud.get_lot(self.db, lot_id, for_update=True)
            if lot is None:
                raise NotFoundFailure(message=f"Lot {lot_id} not found.", entity="lot", entity_id=lot_id)
            if lot.product_id != product_id:
                raise ValidationFailure(
                    message=f"Lot {lot_id} does not hold product {product_id}.",
                    entity="lot",
                    entity_id=lot_id,
                    field="product_id",
                    constraint="lot_product_match",
                )

        balance = balance_crud.get_balance(self.db, product_id, lot_id, for_update=True)
        if balance is None:
            if lot_id is not None:
                raise NotFoundFailure(
                    message=f"No stock balance for product {product_id} in lot {lot_id}.",
                    entity="stock_balance",
                    field="lot_id",
                )
            if self.products.get(product_id) is None:
                raise NotFoundFailure(
                    message=f"Product {product_id} not found or inactive.",
                    entity="product",
                    entity_id=product_id,
                )
            if delta < 0:
                raise InsufficientStockFailure(
                    message=f"Insufficient stock for product {product_id}.",
                    entity="stock_balance",
                    field="quantity",
                    constraint="non_negative",
                    available=0,
                    requested=-delta,
                )
            balance = StockBalance(product_id=product_id, lot_id=None, quantity=0)
            self.db.add(balance)

        current = int(balance.quantity or 0)
        if current + delta < 0:
            raise InsufficientStockFailure(
                message=f"Insufficient stock for product {product_id}.",
                entity="stock_balance",
                entity_id=balance.id,
                field="quantity",
                constraint="non_negative",
                available=current,
                requested=-delta,
            )

        balance.quantity = current + delta
        if lot is not None:
            lot.quantity = int(lot.quantity or 0) + delta
        self.db.flush()
        flow_info(
            logger,
            "stock_adjusted product_id=%s lot_id=%s delta=%s on_hand=%s",
            product_id,
            lot_id,
            delta,
            balance.quantity,
            category="stock",
        )
        return balance

    def adjust_stock(self, product_id: int, lot_id: int | None = None, delta: int = 0) -> StockBalance:
        """
        Move stock for one (product, lot) pair.

        A lot-level adjustment moves the lot quantity by the same delta in the
        same transaction. A failed adjustment leaves both untouched.
        """
        with unit_of_work(self.db):
            return self._apply_delta(product_id, lot_id, delta)

    def get_balance(self, product_id: int, lot_id: int | None = None) -> StockBalance:
        balance = balance_crud.get_balance(self.db, product_id, lot_id)
        if balance is None:
            raise NotFoundFailure(
                message=f"No stock balance for product {product_id}.",
                entity="stock_balance",
                field="product_id",
            )
        return balance

    def list_balances(self, product_id: int | None = None) -> list[StockBalance]:
        return balance_crud.list_balances(self.db, product_id)

    def on_hand_total(self, product_id: int) -> int:
        return balance_crud.on_hand_total(self.db, product_id)

    def list_low_stock(self, threshold: int) -> list[StockBalance]:
        threshold = self._require_int(threshold, "threshold")
        if threshold <= 0:
            raise ValidationFailure(
                message="threshold must be positive.",
                entity="stock_balance",
                field="threshold",
                constraint="positive",
            )
        return balance_crud.list_low(self.db, threshold)

    def list_zero_stock(self) -> list[StockBalance]:
        return balance_crud.list_zero(self.db)
