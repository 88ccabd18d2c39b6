from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .base import BaseSchema


class BalancedEntryCreate(BaseModel):
    # None => next number from the LEDGER number range.
    posting_number: Optional[int] = Field(default=None, ge=1)
    debit_account_id: int = Field(ge=1)
    credit_account_id: int = Field(ge=1)
    amount: Decimal
    posting_date: date
    order_id: Optional[int] = Field(default=None, ge=1)
    sale_item_id: Optional[int] = Field(default=None, ge=1)


class LedgerEntryRecord(BaseModel):
    posting_number: int = Field(ge=1)
    line_number: int = Field(default=1, ge=1)
    posting_date: date
    account_id: int = Field(ge=1)
    debit: Decimal = Decimal("0.00")
    credit: Decimal = Decimal("0.00")
    order_id: Optional[int] = Field(default=None, ge=1)
    sale_item_id: Optional[int] = Field(default=None, ge=1)


class LedgerEntryOut(BaseSchema):
    id: int
    posting_number: int
    line_number: int
    posting_date: date
    order_id: Optional[int] = None
    sale_item_id: Optional[int] = None
    account_id: int
    debit: Decimal = Field(max_digits=12, decimal_places=2)
    credit: Decimal = Field(max_digits=12, decimal_places=2)


class UnbalancedPostingOut(BaseSchema):
    posting_number: int
    total_debit: Decimal
    total_credit: Decimal
    entry_ids: List[int]
    reason: str


class AccountBalanceOut(BaseSchema):
    account_id: int
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal
    start: Optional[date] = None
    end: Optional[date] = None
