from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockflow.models.reference import Product


@dataclass(frozen=True)
class ProductRef:
    id: int
    name: str
    unit_price: Decimal | None = None


class ProductLookup(Protocol):
    def get(self, product_id: int) -> ProductRef | None: ...


class SqlProductLookup:
    """Reads the product master. Inactive products are reported as missing."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> ProductRef | None:
        stmt = (
            select(Product)
            .where(Product.id == product_id)
            .where(Product.is_active.is_(True))
        )
        product = self.db.execute(stmt).scalar_one_or_none()
        if product is None:
            return None
        return ProductRef(id=product.id, name=product.name, unit_price=product.unit_price)
