from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from stockflow.core.errors import NotFoundFailure, ValidationFailure
from stockflow.core.flow_logging import flow_info
from stockflow.crud import ledger_entry as ledger_crud
from stockflow.crud import purchase_order as order_crud
from stockflow.db.session import unit_of_work
from stockflow.models.ledger_entry import LedgerEntry
from stockflow.models.number_range import SysNumberRange
from stockflow.services.money import to_money

logger = logging.getLogger(__name__)

LEDGER_NUMBER_RANGE = "LEDGER"
ZERO = Decimal("0.00")


@dataclass
class UnbalancedPosting:
    posting_number: int
    total_debit: Decimal
    total_credit: Decimal
    entry_ids: list[int] = field(default_factory=list)
    reason: str = "debit_credit_mismatch"


@dataclass
class AccountBalance:
    account_id: int
    total_debit: Decimal
    total_credit: Decimal
    start: date | None = None
    end: date | None = None

    @property
    def balance(self) -> Decimal:
        return self.total_credit - self.total_debit


class LedgerService:
    def __init__(self, db: Session):
        self.db = db

    def _require_account(self, account_id: int, field_name: str) -> None:
        if ledger_crud.get_account(self.db, account_id) is None:
            raise NotFoundFailure(
                message=f"Ledger account {account_id} not found or inactive.",
                entity="ledger_account",
                entity_id=account_id,
                field=field_name,
            )

    def _require_order(self, order_id: int | None) -> None:
        if order_id is not None and order_crud.get_order(self.db, order_id) is None:
            raise NotFoundFailure(
                message=f"Purchase order {order_id} not found.",
                entity="purchase_order",
                entity_id=order_id,
                field="order_id",
            )

    def next_posting_number(self) -> int:
        """
        Reserve the next posting number from the LEDGER number range.

        The range row is read with a row lock and bumped in the caller's
        transaction. A missing range is created, seeded from the highest
        posting number already in the ledger.
        """
        stmt = (
            select(SysNumberRange)
            .where(SysNumberRange.category == LEDGER_NUMBER_RANGE)
            .with_for_update()
        )
        number_range = self.db.execute(stmt).scalar_one_or_none()
        if number_range is None:
            number_range = SysNumberRange(
                category=LEDGER_NUMBER_RANGE,
                current_value=ledger_crud.max_posting_number(self.db),
                is_active=True,
            )
            self.db.add(number_range)
        elif not number_range.is_active:
            raise ValidationFailure(
                message="The LEDGER number range is inactive.",
                entity="sys_number_range",
                field="is_active",
                constraint="active_number_range",
            )

        candidate = int(number_range.current_value or 0) + 1
        while ledger_crud.posting_exists(self.db, candidate):
            candidate += 1
        number_range.current_value = candidate
        self.db.flush()
        return candidate

    def _post_balanced(
        self,
        *,
        posting_number: int | None,
        debit_account_id: int,
        credit_account_id: int,
        amount,
        posting_date: date,
        order_id: int | None = None,
        sale_item_id: int | None = None,
    ) -> list[LedgerEntry]:
        value = to_money(amount, entity="ledger_entry", field="amount")
        if debit_account_id == credit_account_id:
            raise ValidationFailure(
                message="Debit and credit accounts must differ.",
                entity="ledger_entry",
                field="credit_account_id",
                constraint="distinct_accounts",
            )
        self._require_account(debit_account_id, "debit_account_id")
        self._require_account(credit_account_id, "credit_account_id")
        self._require_order(order_id)

        if posting_number is None:
            posting_number = self.next_posting_number()
        elif ledger_crud.posting_exists(self.db, posting_number):
            raise ValidationFailure(
                message=f"Posting number {posting_number} is already in use.",
                entity="ledger_entry",
                field="posting_number",
                constraint="uq_ledger_entry_posting_line",
            )

        debit_line = LedgerEntry(
            posting_number=posting_number,
            line_number=1,
            posting_date=posting_date,
            order_id=order_id,
            sale_item_id=sale_item_id,
            account_id=debit_account_id,
            debit=value,
            credit=ZERO,
        )
        credit_line = LedgerEntry(
            posting_number=posting_number,
            line_number=2,
            posting_date=posting_date,
            order_id=order_id,
            sale_item_id=sale_item_id,
            account_id=credit_account_id,
            debit=ZERO,
            credit=value,
        )
        self.db.add_all([debit_line, credit_line])
        self.db.flush()
        flow_info(
            logger,
            "ledger_posted posting_number=%s amount=%s debit_account=%s credit_account=%s order_id=%s",
            posting_number,
            value,
            debit_account_id,
            credit_account_id,
            order_id,
            category="ledger",
        )
        return [debit_line, credit_line]

    def post_balanced_entry(
        self,
        posting_number: int | None,
        debit_account_id: int,
        credit_account_id: int,
        amount,
        posting_date: date,
        order_id: int | None = None,
        sale_item_id: int | None = None,
    ) -> list[LedgerEntry]:
        """Write one debit line and one credit line of equal amount."""
        with unit_of_work(self.db):
            return self._post_balanced(
                posting_number=posting_number,
                debit_account_id=debit_account_id,
                credit_account_id=credit_account_id,
                amount=amount,
                posting_date=posting_date,
                order_id=order_id,
                sale_item_id=sale_item_id,
            )

    def record_entry(
        self,
        *,
        posting_number: int,
        posting_date: date,
        account_id: int,
        debit=ZERO,
        credit=ZERO,
        line_number: int = 1,
        order_id: int | None = None,
        sale_item_id: int | None = None,
    ) -> LedgerEntry:
        """
        Record a single raw ledger row.

        Unlike post_balanced_entry this can leave a posting unbalanced;
        find_unbalanced() reports such postings.
        """
        with unit_of_work(self.db):
            debit_value = to_money(debit, entity="ledger_entry", field="debit", minimum=ZERO)
            credit_value = to_money(credit, entity="ledger_entry", field="credit", minimum=ZERO)
            if debit_value == ZERO and credit_value == ZERO:
                raise ValidationFailure(
                    message="Either debit or credit must be greater than zero.",
                    entity="ledger_entry",
                    field="debit",
                    constraint="non_zero_amount",
                )
            self._require_account(account_id, "account_id")
            self._require_order(order_id)
            if ledger_crud.line_exists(self.db, posting_number, line_number):
                raise ValidationFailure(
                    message=f"Posting {posting_number} already has a line {line_number}.",
                    entity="ledger_entry",
                    field="line_number",
                    constraint="uq_ledger_entry_posting_line",
                )
            entry = LedgerEntry(
                posting_number=posting_number,
                line_number=line_number,
                posting_date=posting_date,
                order_id=order_id,
                sale_item_id=sale_item_id,
                account_id=account_id,
                debit=debit_value,
                credit=credit_value,
            )
            self.db.add(entry)
            self.db.flush()
            flow_info(
                logger,
                "ledger_entry_recorded posting_number=%s line=%s account=%s",
                posting_number,
                line_number,
                account_id,
                category="ledger",
            )
            return entry

    def _delete_for_order(self, order_id: int) -> int:
        removed = ledger_crud.delete_for_order(self.db, order_id)
        flow_info(
            logger,
            "ledger_entries_deleted order_id=%s count=%s",
            order_id,
            removed,
            category="ledger",
        )
        return removed

    def delete_entries_for_order(self, order_id: int) -> int:
        with unit_of_work(self.db):
            return self._delete_for_order(order_id)

    def find_unbalanced(self) -> list[UnbalancedPosting]:
        grouped: dict[int, list[LedgerEntry]] = {}
        for entry in ledger_crud.list_all(self.db):
            grouped.setdefault(entry.posting_number, []).append(entry)

        findings: list[UnbalancedPosting] = []
        for posting_number, entries in grouped.items():
            total_debit = sum((Decimal(e.debit or 0) for e in entries), ZERO)
            total_credit = sum((Decimal(e.credit or 0) for e in entries), ZERO)
            ids = [e.id for e in entries]
            if total_debit != total_credit:
                findings.append(
                    UnbalancedPosting(posting_number, total_debit, total_credit, ids)
                )
                continue
            if any(Decimal(e.debit or 0) > 0 and Decimal(e.credit or 0) > 0 for e in entries):
                findings.append(
                    UnbalancedPosting(
                        posting_number,
                        total_debit,
                        total_credit,
                        ids,
                        reason="debit_and_credit_on_same_line",
                    )
                )
        return findings

    def get(self, entry_id: int) -> LedgerEntry:
        entry = ledger_crud.get_entry(self.db, entry_id)
        if entry is None:
            raise NotFoundFailure(
                message=f"Ledger entry {entry_id} not found.",
                entity="ledger_entry",
                entity_id=entry_id,
            )
        return entry

    def list_for_order(self, order_id: int) -> list[LedgerEntry]:
        return ledger_crud.list_for_order(self.db, order_id)

    def list_for_posting(self, posting_number: int) -> list[LedgerEntry]:
        return ledger_crud.list_for_posting(self.db, posting_number)

    def list_between(self, start: date, end: date) -> list[LedgerEntry]:
        if start > end:
            raise ValidationFailure(
                message="start must not be after end.",
                entity="ledger_entry",
                field="start",
                constraint="start_before_end",
            )
        return ledger_crud.list_between(self.db, start, end)

    def account_balance(
        self,
        account_id: int,
        start: date | None = None,
        end: date | None = None,
    ) -> AccountBalance:
        self._require_account(account_id, "account_id")
        total_debit, total_credit = ledger_crud.account_totals(self.db, account_id, start, end)
        return AccountBalance(
            account_id=account_id,
            total_debit=total_debit.quantize(Decimal("0.01")),
            total_credit=total_credit.quantize(Decimal("0.01")),
            start=start,
            end=end,
        )

    def count_for_order(self, order_id: int) -> int:
        return ledger_crud.count_for_order(self.db, order_id)
