from datetime import date
from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    Date,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockflow.db.base import Base
from stockflow.models.mixins import AuditMixin
from stockflow.models.order_status import OrderStatus
from stockflow.models.reference import Product


class PurchaseOrder(AuditMixin, Base):
    """
    Purchase order aggregate root.
    total_amount is rewritten from the line items on every item mutation.
    """
    __tablename__ = "purchase_order"

    __table_args__ = (
        CheckConstraint("total_amount >= 0", name="ck_purchase_order_total_non_negative"),
        CheckConstraint("expected_date >= order_date", name="ck_purchase_order_expected_after_order"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus, name="order_status", native_enum=False, length=20),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
    )
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    expected_date: Mapped[date] = mapped_column(Date, nullable=False)
    delivery_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    items: Mapped[list["PurchaseOrderItem"]] = relationship(
        "PurchaseOrderItem",
        back_populates="order",
        order_by="PurchaseOrderItem.id",
    )

    def __repr__(self) -> str:
        return f"<PurchaseOrder(id={self.id}, status={self.status})>"


class PurchaseOrderItem(Base):
    """
    Line item of a purchase order.
    order_id and product_id never change after insert.
    """
    __tablename__ = "purchase_order_item"

    __table_args__ = (
        UniqueConstraint("order_id", "product_id", name="uq_purchase_order_item_product"),
        CheckConstraint("quantity >= 1", name="ck_purchase_order_item_quantity"),
        CheckConstraint("unit_price >= 0.01", name="ck_purchase_order_item_unit_price"),
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
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)

    order: Mapped["PurchaseOrder"] = relationship("PurchaseOrder", back_populates="items")
    product: Mapped["Product"] = relationship("Product")

    @property
    def line_total(self) -> Decimal:
        if self.quantity is None or self.unit_price is None:
            return Decimal("0.00")
        return (Decimal(self.unit_price) * self.quantity).quantize(Decimal("0.01"))

    def __repr__(self) -> str:
        return f"<PurchaseOrderItem(order_id={self.order_id}, product_id={self.product_id})>"
