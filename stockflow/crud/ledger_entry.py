from __future__ import annotations

from datetime import date
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from stockflow.models.ledger_entry import LedgerEntry
from stockflow.models.reference import LedgerAccount


def get_entry(db: Session, entry_id: int) -> LedgerEntry | None:
    return db.get(LedgerEntry, entry_id)


def get_account(db: Session, account_id: int) -> LedgerAccount | None:
    stmt = (
        select(LedgerAccount)
        .where(LedgerAccount.id == account_id)
        .where(LedgerAccount.is_active.is_(True))
    )
    return db.execute(stmt).scalar_one_or_none()


def posting_exists(db: Session, posting_number: int) -> bool:
    stmt = select(LedgerEntry.id).where(LedgerEntry.posting_number == posting_number).limit(1)
    return db.execute(stmt).first() is not None


def line_exists(db: Session, posting_number: int, line_number: int) -> bool:
    stmt = (
        select(LedgerEntry.id)
        .where(LedgerEntry.posting_number == posting_number)
        .where(LedgerEntry.line_number == line_number)
        .limit(1)
    )
    return db.execute(stmt).first() is not None


def max_posting_number(db: Session) -> int:
    stmt = select(func.coalesce(func.max(LedgerEntry.posting_number), 0))
    return int(db.execute(stmt).scalar_one())


def list_for_order(db: Session, order_id: int) -> list[LedgerEntry]:
    stmt = (
        select(LedgerEntry)
        .where(LedgerEntry.order_id == order_id)
        .order_by(LedgerEntry.posting_number, LedgerEntry.line_number)
    )
    return list(db.execute(stmt).scalars().all())


def list_for_posting(db: Session, posting_number: int) -> list[LedgerEntry]:
    stmt = (
        select(LedgerEntry)
        .where(LedgerEntry.posting_number == posting_number)
        .order_by(LedgerEntry.line_number)
    )
    return list(db.execute(stmt).scalars().all())


def list_between(db: Session, start: date, end: date) -> list[LedgerEntry]:
    stmt = (
        select(LedgerEntry)
        .where(LedgerEntry.posting_date >= start)
        .where(LedgerEntry.posting_date <= end)
        .order_by(LedgerEntry.posting_date, LedgerEntry.posting_number, LedgerEntry.line_number)
    )
    return list(db.execute(stmt).scalars().all())


def list_all(db: Session) -> list[LedgerEntry]:
    stmt = select(LedgerEntry).order_by(LedgerEntry.posting_number, LedgerEntry.line_number)
    return list(db.execute(stmt).scalars().all())


def account_totals(
    db: Session,
    account_id: int,
    start: date | None = None,
    end: date | None = None,
) -> tuple[Decimal, Decimal]:
    stmt = select(
        func.coalesce(func.sum(LedgerEntry.debit), 0),
        func.coalesce(func.sum(LedgerEntry.credit), 0),
    ).where(LedgerEntry.account_id == account_id)
    if start is not None:
        stmt = stmt.where(LedgerEntry.posting_date >= start)
    if end is not None:
        stmt = stmt.where(LedgerEntry.posting_date <= end)
    debit, credit = db.execute(stmt).one()
    return Decimal(str(debit)), Decimal(str(credit))


def count_for_order(db: Session, order_id: int) -> int:
    stmt = select(func.count(LedgerEntry.id)).where(LedgerEntry.order_id == order_id)
    return int(db.execute(stmt).scalar_one())


def delete_for_order(db: Session, order_id: int) -> int:
    result = db.execute(
        delete(LedgerEntry)
        .where(LedgerEntry.order_id == order_id)
    )
    return result.rowcount or 0
