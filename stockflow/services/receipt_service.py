from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
import logging

from sqlalchemy.orm import Session

from stockflow.core import clock
from stockflow.core.config import settings
from stockflow.crud import line_item as item_crud
from stockflow.db.session import unit_of_work
from stockflow.models.ledger_entry import LedgerEntry
from stockflow.models.lot import Lot
from stockflow.services.ledger_service import LedgerService
from stockflow.services.lot_service import LotService

logger = logging.getLogger(__name__)


@dataclass
class ReceiptResult:
    lot: Lot
    entries: list[LedgerEntry]


class ReceiptService:
    def __init__(self, db: Session):
        self.db = db
        self.lots = LotService(db)
        self.ledger = LedgerService(db)

    def receive_goods(
        self,
        order_id: int,
        product_id: int,
        quantity: int,
        expiry_date: date,
        posting_date: date | None = None,
        debit_account_id: int | None = None,
        credit_account_id: int | None = None,
    ) -> ReceiptResult:
        """
        Book a delivery: lot + stock balance + balanced posting, all or nothing.

        The posting amount is quantity x the ordered unit price, debited to the
        inventory account and credited to the supplier payable account.
        """
        with unit_of_work(self.db):
            lot = self.lots.receive_lot(order_id, product_id, quantity, expiry_date)
            item = item_crud.find_item_by_product(self.db, order_id, product_id)
            amount = (Decimal(item.unit_price) * quantity).quantize(Decimal("0.01"))
            entries = self.ledger.post_balanced_entry(
                None,
                debit_account_id or settings.RECEIPT_DEBIT_ACCOUNT_ID,
                credit_account_id or settings.RECEIPT_CREDIT_ACCOUNT_ID,
                amount,
                posting_date or clock.today(),
                order_id=order_id,
            )
            logger.info(
                "goods_received order_id=%s lot_id=%s posting_number=%s amount=%s",
                order_id,
                lot.id,
                entries[0].posting_number,
                amount,
            )
            return ReceiptResult(lot=lot, entries=entries)
