from datetime import date

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockflow.db.base import Base
from stockflow.models.reference import Product


class Lot(Base):
    """
    Batch of goods received against one purchase order.
    Every quantity change is mirrored on the matching stock_balance row.
    """
    __tablename__ = "lot"

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_lot_quantity_non_negative"),
        CheckConstraint("received_quantity >= 0", name="ck_lot_received_quantity_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_order.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("product.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Quantity booked at receipt; quantity above moves with stock.
    received_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    received_at: Mapped[object] = mapped_column(DateTime, server_default=func.now())

    product: Mapped["Product"] = relationship("Product")

    def __repr__(self) -> str:
        return f"<Lot(id={self.id}, order_id={self.order_id}, qty={self.quantity})>"
