"""create core purchasing, inventory and ledger tables

Revision ID: 3f1a9c2e7b10
Revises:
Create Date: 2025-01-06 09:30:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3f1a9c2e7b10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- reference data ---
    op.create_table(
        "product",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("sku", sa.String(length=40), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_product_sku", "product", ["sku"], unique=True)

    op.create_table(
        "ledger_account",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_ledger_account_code", "ledger_account", ["code"], unique=True)

    op.create_table(
        "app_user",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("login", sa.String(length=150), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("login", name="uq_app_user_login"),
        sa.UniqueConstraint("email", name="uq_app_user_email"),
    )

    op.create_table(
        "sys_number_range",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.Column("current_value", sa.BigInteger(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("category", name="uq_sys_number_range_category"),
    )

    # --- order aggregate ---
    op.create_table(
        "purchase_order",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("order_date", sa.Date(), nullable=False),
        sa.Column("expected_date", sa.Date(), nullable=False),
        sa.Column("delivery_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column(
            "created_by",
            sa.String(length=255),
            server_default=sa.text("'system@local'"),
            nullable=False,
        ),
        sa.Column(
            "last_changed_by",
            sa.String(length=255),
            server_default=sa.text("'system@local'"),
            nullable=False,
        ),
        sa.CheckConstraint("total_amount >= 0", name="ck_purchase_order_total_non_negative"),
        sa.CheckConstraint(
            "expected_date >= order_date",
            name="ck_purchase_order_expected_after_order",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_purchase_order_status", "purchase_order", ["status"], unique=False)

    op.create_table(
        "purchase_order_item",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_purchase_order_item_quantity"),
        sa.CheckConstraint("unit_price >= 0.01", name="ck_purchase_order_item_unit_price"),
        sa.ForeignKeyConstraint(["order_id"], ["purchase_order.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["product_id"], ["product.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_id", "product_id", name="uq_purchase_order_item_product"),
    )
    op.create_index(
        "ix_purchase_order_item_order_id",
        "purchase_order_item",
        ["order_id"],
        unique=False,
    )

    # --- inventory layer ---
    op.create_table(
        "lot",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("received_quantity", sa.Integer(), nullable=False),
        sa.Column("received_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.CheckConstraint("quantity >= 0", name="ck_lot_quantity_non_negative"),
        sa.CheckConstraint(
            "received_quantity >= 0",
            name="ck_lot_received_quantity_non_negative",
        ),
        sa.ForeignKeyConstraint(["order_id"], ["purchase_order.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["product_id"], ["product.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_lot_order_id", "lot", ["order_id"], unique=False)
    op.create_index("ix_lot_product_id", "lot", ["product_id"], unique=False)
    op.create_index("ix_lot_expiry_date", "lot", ["expiry_date"], unique=False)

    op.create_table(
        "stock_balance",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("lot_id", sa.Integer(), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.CheckConstraint("quantity >= 0", name="ck_stock_balance_quantity_non_negative"),
        sa.ForeignKeyConstraint(["product_id"], ["product.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["lot_id"], ["lot.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_id", "lot_id", name="uq_stock_balance_product_lot"),
    )
    op.create_index("ix_stock_balance_product_id", "stock_balance", ["product_id"], unique=False)
    op.create_index("ix_stock_balance_lot_id", "stock_balance", ["lot_id"], unique=False)
    op.create_index(
        "uq_stock_balance_product_level",
        "stock_balance",
        ["product_id"],
        unique=True,
        sqlite_where=sa.text("lot_id IS NULL"),
        postgresql_where=sa.text("lot_id IS NULL"),
    )

    # --- financial layer ---
    op.create_table(
        "ledger_entry",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("posting_number", sa.Integer(), nullable=False),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("posting_date", sa.Date(), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=True),
        sa.Column("sale_item_id", sa.Integer(), nullable=True),
        sa.Column("account_id", sa.Integer(), nullable=False),
        sa.Column("debit", sa.Numeric(12, 2), nullable=False),
        sa.Column("credit", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=True),
        sa.CheckConstraint("debit >= 0", name="ck_ledger_entry_debit_non_negative"),
        sa.CheckConstraint("credit >= 0", name="ck_ledger_entry_credit_non_negative"),
        sa.ForeignKeyConstraint(["order_id"], ["purchase_order.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["account_id"], ["ledger_account.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "posting_number",
            "line_number",
            name="uq_ledger_entry_posting_line",
        ),
    )
    op.create_index("ix_ledger_entry_posting_number", "ledger_entry", ["posting_number"], unique=False)
    op.create_index("ix_ledger_entry_posting_date", "ledger_entry", ["posting_date"], unique=False)
    op.create_index("ix_ledger_entry_order_id", "ledger_entry", ["order_id"], unique=False)
    op.create_index("ix_ledger_entry_sale_item_id", "ledger_entry", ["sale_item_id"], unique=False)
    op.create_index("ix_ledger_entry_account_id", "ledger_entry", ["account_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_ledger_entry_account_id", table_name="ledger_entry")
    op.drop_index("ix_ledger_entry_sale_item_id", table_name="ledger_entry")
    op.drop_index("ix_ledger_entry_order_id", table_name="ledger_entry")
    op.drop_index("ix_ledger_entry_posting_date", table_name="ledger_entry")
    op.drop_index("ix_ledger_entry_posting_number", table_name="ledger_entry")
    op.drop_table("ledger_entry")

    op.drop_index("uq_stock_balance_product_level", table_name="stock_balance")
    op.drop_index("ix_stock_balance_lot_id", table_name="stock_balance")
    op.drop_index("ix_stock_balance_product_id", table_name="stock_balance")
    op.drop_table("stock_balance")

    op.drop_index("ix_lot_expiry_date", table_name="lot")
    op.drop_index("ix_lot_product_id", table_name="lot")
    op.drop_index("ix_lot_order_id", table_name="lot")
    op.drop_table("lot")

    op.drop_index("ix_purchase_order_item_order_id", table_name="purchase_order_item")
    op.drop_table("purchase_order_item")

    op.drop_index("ix_purchase_order_status", table_name="purchase_order")
    op.drop_table("purchase_order")

    op.drop_table("sys_number_range")
    op.drop_table("app_user")
    op.drop_index("ix_ledger_account_code", table_name="ledger_account")
    op.drop_table("ledger_account")
    op.drop_index("ix_product_sku", table_name="product")
    op.drop_table("product")
