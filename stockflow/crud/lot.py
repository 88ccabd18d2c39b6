from __future__ import annotations

from datetime import date

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from stockflow.models.lot import Lot


def get_lot(db: Session, lot_id: int, for_update: bool = False) -> Lot | None:
    if not for_update:
        return db.get(Lot, lot_id)
    stmt = select(Lot).where(Lot.id == lot_id).with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def list_lots_for_order(db: Session, order_id: int) -> list[Lot]:
    stmt = select(Lot).where(Lot.order_id == order_id).order_by(Lot.id)
    return list(db.execute(stmt).scalars().all())


def sum_quantity_for_order(db: Session, order_id: int) -> int:
    stmt = select(func.coalesce(func.sum(Lot.quantity), 0)).where(Lot.order_id == order_id)
    return int(db.execute(stmt).scalar_one())


def sum_received_for_product(db: Session, order_id: int, product_id: int) -> int:
    stmt = (
        select(func.coalesce(func.sum(Lot.received_quantity), 0))
        .where(Lot.order_id == order_id)
        .where(Lot.product_id == product_id)
    )
    return int(db.execute(stmt).scalar_one())


def list_expired(db: Session, as_of: date) -> list[Lot]:
    stmt = (
        select(Lot)
        .where(Lot.expiry_date < as_of)
        .order_by(Lot.expiry_date, Lot.id)
    )
    return list(db.execute(stmt).scalars().all())


def list_expiring_between(db: Session, start: date, end: date) -> list[Lot]:
    stmt = (
        select(Lot)
        .where(Lot.expiry_date >= start)
        .where(Lot.expiry_date <= end)
        .order_by(Lot.expiry_date, Lot.id)
    )
    return list(db.execute(stmt).scalars().all())


def delete_lots(db: Session, lot_ids: list[int]) -> int:
    if not lot_ids:
        return 0
    result = db.execute(
        delete(Lot)
        .where(Lot.id.in_(sorted(set(lot_ids))))
    )
    return result.rowcount or 0
