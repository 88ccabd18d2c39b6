from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from stockflow.db.session import get_db
from stockflow.schemas.ledger import (
    AccountBalanceOut,
    BalancedEntryCreate,
    LedgerEntryOut,
    LedgerEntryRecord,
    UnbalancedPostingOut,
)
from stockflow.services.ledger_service import LedgerService

router = APIRouter()


@router.post(
    "/postings",
    response_model=List[LedgerEntryOut],
    status_code=status.HTTP_201_CREATED,
)
def post_balanced_entry(payload: BalancedEntryCreate, db: Session = Depends(get_db)):
    return LedgerService(db).post_balanced_entry(
        payload.posting_number,
        payload.debit_account_id,
        payload.credit_account_id,
        payload.amount,
        payload.posting_date,
        order_id=payload.order_id,
        sale_item_id=payload.sale_item_id,
    )


@router.get("/postings/{posting_number}", response_model=List[LedgerEntryOut])
def list_posting_lines(posting_number: int, db: Session = Depends(get_db)):
    return LedgerService(db).list_for_posting(posting_number)


@router.post(
    "/entries",
    response_model=LedgerEntryOut,
    status_code=status.HTTP_201_CREATED,
)
def record_entry(payload: LedgerEntryRecord, db: Session = Depends(get_db)):
    return LedgerService(db).record_entry(**payload.model_dump())


@router.get("/entries", response_model=List[LedgerEntryOut])
def list_entries_between(
    start: date = Query(...),
    end: date = Query(...),
    db: Session = Depends(get_db),
):
    return LedgerService(db).list_between(start, end)


@router.get("/entries/{entry_id}", response_model=LedgerEntryOut)
def get_entry(entry_id: int, db: Session = Depends(get_db)):
    return LedgerService(db).get(entry_id)


@router.get("/unbalanced", response_model=List[UnbalancedPostingOut])
def list_unbalanced_postings(db: Session = Depends(get_db)):
    return LedgerService(db).find_unbalanced()


@router.get("/accounts/{account_id}/balance", response_model=AccountBalanceOut)
def get_account_balance(
    account_id: int,
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    return LedgerService(db).account_balance(account_id, start, end)
