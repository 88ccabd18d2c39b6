from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from stockflow.models.stock_balance import StockBalance


def get_balance(
    db: Session,
    product_id: int,
    lot_id: int | None = None,
    for_update: bool = False,
) -> StockBalance | None:
    stmt = select(StockBalance).where(StockBalance.product_id == product_id)
    if lot_id is None:
        stmt = stmt.where(StockBalance.lot_id.is_(None))
    else:
        stmt = stmt.where(StockBalance.lot_id == lot_id)
    if for_update:
        stmt = stmt.with_for_update()
    return db.execute(stmt.order_by(StockBalance.id)).scalars().first()


def list_balances(db: Session, product_id: int | None = None) -> list[StockBalance]:
    stmt = select(StockBalance).order_by(StockBalance.product_id, StockBalance.id)
    if product_id is not None:
        stmt = stmt.where(StockBalance.product_id == product_id)
    return list(db.execute(stmt).scalars().all())


def list_balances_for_lots(db: Session, lot_ids: list[int]) -> list[StockBalance]:
    if not lot_ids:
        return []
    stmt = (
        select(StockBalance)
        .where(StockBalance.lot_id.in_(sorted(set(lot_ids))))
        .order_by(StockBalance.id)
    )
    return list(db.execute(stmt).scalars().all())


def on_hand_total(db: Session, product_id: int) -> int:
    stmt = select(func.coalesce(func.sum(StockBalance.quantity), 0)).where(
        StockBalance.product_id == product_id
    )
    return int(db.execute(stmt).scalar_one())


def list_low(db: Session, threshold: int) -> list[StockBalance]:
    stmt = (
        select(StockBalance)
        .where(StockBalance.quantity <= threshold)
        .order_by(StockBalance.quantity, StockBalance.id)
    )
    return list(db.execute(stmt).scalars().all())


def list_zero(db: Session) -> list[StockBalance]:
    stmt = select(StockBalance).where(StockBalance.quantity == 0).order_by(StockBalance.id)
    return list(db.execute(stmt).scalars().all())


def delete_balances_for_lots(db: Session, lot_ids: list[int]) -> int:
    if not lot_ids:
        return 0
    result = db.execute(
        delete(StockBalance)
        .where(StockBalance.lot_id.in_(sorted(set(lot_ids))))
    )
    return result.rowcount or 0
