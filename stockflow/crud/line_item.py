from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from stockflow.models.purchase_order import PurchaseOrderItem


def get_item(db: Session, item_id: int) -> PurchaseOrderItem | None:
    return db.get(PurchaseOrderItem, item_id)


def list_items(db: Session, order_id: int) -> list[PurchaseOrderItem]:
    stmt = (
        select(PurchaseOrderItem)
        .where(PurchaseOrderItem.order_id == order_id)
        .order_by(PurchaseOrderItem.id)
    )
    return list(db.execute(stmt).scalars().all())


def find_item_by_product(db: Session, order_id: int, product_id: int) -> PurchaseOrderItem | None:
    stmt = (
        select(PurchaseOrderItem)
        .where(PurchaseOrderItem.order_id == order_id)
        .where(PurchaseOrderItem.product_id == product_id)
    )
    return db.execute(stmt).scalar_one_or_none()


def delete_items_for_order(db: Session, order_id: int) -> int:
    result = db.execute(
        delete(PurchaseOrderItem)
        .where(PurchaseOrderItem.order_id == order_id)
    )
    return result.rowcount or 0
