from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from .inventory import LotOut
from .ledger import LedgerEntryOut


class ReceiptCreate(BaseModel):
    product_id: int = Field(ge=1)
    quantity: int
    expiry_date: date
    posting_date: Optional[date] = None
    debit_account_id: Optional[int] = Field(default=None, ge=1)
    credit_account_id: Optional[int] = Field(default=None, ge=1)


class ReceiptOut(BaseModel):
    lot: LotOut
    entries: List[LedgerEntryOut]
