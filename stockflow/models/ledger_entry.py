from datetime import date
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockflow.db.base import Base
from stockflow.models.reference import LedgerAccount


class LedgerEntry(Base):
    """
    One row of a double-entry posting (lançamento).

    Rows of the same posting share posting_number and are told apart by
    line_number. A row carrying both debit and credit is representable but
    is only produced by raw recording, never by balanced posting.
    """
    __tablename__ = "ledger_entry"

    __table_args__ = (
        UniqueConstraint("posting_number", "line_number", name="uq_ledger_entry_posting_line"),
        CheckConstraint("debit >= 0", name="ck_ledger_entry_debit_non_negative"),
        CheckConstraint("credit >= 0", name="ck_ledger_entry_credit_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    posting_number: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    line_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    posting_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    order_id: Mapped[int | None] = mapped_column(
        ForeignKey("purchase_order.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    # Sales live outside this service; kept as a plain reference.
    sale_item_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    account_id: Mapped[int] = mapped_column(
        ForeignKey("ledger_account.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    debit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    credit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    created_at: Mapped[object] = mapped_column(DateTime, server_default=func.now())

    account: Mapped["LedgerAccount"] = relationship("LedgerAccount")

    @property
    def balance(self) -> Decimal:
        return Decimal(self.debit or 0) - Decimal(self.credit or 0)

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry(posting={self.posting_number}, line={self.line_number}, "
            f"debit={self.debit}, credit={self.credit})>"
        )
