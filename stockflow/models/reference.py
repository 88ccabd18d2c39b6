from decimal import Decimal

from sqlalchemy import Boolean, DateTime, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column

from stockflow.db.base import Base


class Product(Base):
    """
    Read-only product master consumed through the product lookup.
    The core never writes to this table.
    """
    __tablename__ = "product"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    sku: Mapped[str] = mapped_column(String(40), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[object] = mapped_column(DateTime, server_default=func.now())

    def __repr__(self) -> str:
        return f"<Product(sku='{self.sku}')>"


class LedgerAccount(Base):
    """
    Chart-of-accounts entry (plano de contas).
    Examples: '1.1.4 Inventory', '2.1.1 Suppliers payable'.
    """
    __tablename__ = "ledger_account"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[object] = mapped_column(DateTime, server_default=func.now())
