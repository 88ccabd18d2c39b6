from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from stockflow.models.order_status import OrderStatus
from stockflow.models.purchase_order import PurchaseOrder


def get_order(db: Session, order_id: int, for_update: bool = False) -> PurchaseOrder | None:
    if not for_update:
        return db.get(PurchaseOrder, order_id)
    stmt = select(PurchaseOrder).where(PurchaseOrder.id == order_id).with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def list_orders(
    db: Session,
    skip: int = 0,
    limit: int = 50,
    status: OrderStatus | None = None,
) -> list[PurchaseOrder]:
    stmt = select(PurchaseOrder).order_by(PurchaseOrder.id.desc()).offset(skip).limit(limit)
    if status is not None:
        stmt = stmt.where(PurchaseOrder.status == status)
    return list(db.execute(stmt).scalars().all())


def list_by_value_range(
    db: Session,
    min_total: Decimal | None = None,
    max_total: Decimal | None = None,
) -> list[PurchaseOrder]:
    stmt = select(PurchaseOrder).order_by(PurchaseOrder.total_amount.desc(), PurchaseOrder.id)
    if min_total is not None:
        stmt = stmt.where(PurchaseOrder.total_amount >= min_total)
    if max_total is not None:
        stmt = stmt.where(PurchaseOrder.total_amount <= max_total)
    return list(db.execute(stmt).scalars().all())


def list_by_expected_date(db: Session, expected: date) -> list[PurchaseOrder]:
    stmt = (
        select(PurchaseOrder)
        .where(PurchaseOrder.expected_date == expected)
        .order_by(PurchaseOrder.id)
    )
    return list(db.execute(stmt).scalars().all())


def list_by_order_period(db: Session, start: date, end: date) -> list[PurchaseOrder]:
    stmt = (
        select(PurchaseOrder)
        .where(PurchaseOrder.order_date >= start)
        .where(PurchaseOrder.order_date <= end)
        .order_by(PurchaseOrder.order_date, PurchaseOrder.id)
    )
    return list(db.execute(stmt).scalars().all())


def list_overdue(db: Session, as_of: date) -> list[PurchaseOrder]:
    stmt = (
        select(PurchaseOrder)
        .where(PurchaseOrder.expected_date < as_of)
        .where(PurchaseOrder.status.in_([OrderStatus.PENDING, OrderStatus.PROCESSING]))
        .order_by(PurchaseOrder.expected_date, PurchaseOrder.id)
    )
    return list(db.execute(stmt).scalars().all())


def count_by_status(db: Session, status: OrderStatus) -> int:
    stmt = select(func.count(PurchaseOrder.id)).where(PurchaseOrder.status == status)
    return int(db.execute(stmt).scalar_one())


def delete_order(db: Session, order_id: int) -> int:
    result = db.execute(
        delete(PurchaseOrder)
        .where(PurchaseOrder.id == order_id)
    )
    return result.rowcount or 0
