from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from stockflow.db.base import Base


class StockBalance(Base):
    """
    On-hand quantity per (product, lot).
    lot_id is NULL for product-level stock that is not tied to a lot.
    """
    __tablename__ = "stock_balance"

    __table_args__ = (
        UniqueConstraint("product_id", "lot_id", name="uq_stock_balance_product_lot"),
        CheckConstraint("quantity >= 0", name="ck_stock_balance_quantity_non_negative"),
        # one product-level (lot_id NULL) row per product
        Index(
            "uq_stock_balance_product_level",
            "product_id",
            unique=True,
            sqlite_where=text("lot_id IS NULL"),
            postgresql_where=text("lot_id IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("product.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    lot_id: Mapped[int | None] = mapped_column(
        ForeignKey("lot.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[object] = mapped_column(
        DateTime,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<StockBalance(product_id={self.product_id}, lot_id={self.lot_id}, qty={self.quantity})>"
