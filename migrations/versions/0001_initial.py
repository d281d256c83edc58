"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # clients
    op.create_table(
        "clients",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
    )
    op.create_index("ix_clients_name", "clients", ["name"])

    # users
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
    )

    # invoice_groups
    op.create_table(
        "invoice_groups",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("prefix", sa.String(), nullable=False, server_default=""),
        sa.Column("next_id", sa.BigInteger(), nullable=False, server_default="1"),
        sa.Column("left_pad", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("prefix_year", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("prefix_month", sa.Boolean(), nullable=False, server_default=sa.false()),
    )

    # tax_rates
    op.create_table(
        "tax_rates",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("percent", sa.Numeric(10, 3), nullable=False),
    )

    # item_lookups
    op.create_table(
        "item_lookups",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(20, 4), nullable=False, server_default="0"),
    )

    # quotes
    op.create_table(
        "quotes",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("client_id", sa.BigInteger(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("invoice_group_id", sa.BigInteger(), sa.ForeignKey("invoice_groups.id"), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("number", sa.String(), nullable=False),
        sa.Column("created_at", sa.Date(), nullable=False),
        sa.Column("expires_at", sa.Date(), nullable=False),
        sa.Column("quote_status_id", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("footer", sa.Text(), nullable=True),
        sa.Column("url_key", sa.String(32), nullable=False, unique=True),
        sa.Column("item_subtotal", sa.Numeric(20, 2), nullable=False, server_default="0"),
        sa.Column("item_tax_total", sa.Numeric(20, 2), nullable=False, server_default="0"),
        sa.Column("tax_total", sa.Numeric(20, 2), nullable=False, server_default="0"),
        sa.Column("total", sa.Numeric(20, 2), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.UniqueConstraint("invoice_group_id", "number", name="uq_quotes_group_number"),
    )

    # quote_items
    op.create_table(
        "quote_items",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("quote_id", sa.BigInteger(), sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tax_rate_id", sa.BigInteger(), sa.ForeignKey("tax_rates.id"), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Numeric(20, 4), nullable=False, server_default="0"),
        sa.Column("price", sa.Numeric(20, 4), nullable=False, server_default="0"),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
    )

    # quote_tax_rates
    op.create_table(
        "quote_tax_rates",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("quote_id", sa.BigInteger(), sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tax_rate_id", sa.BigInteger(), sa.ForeignKey("tax_rates.id"), nullable=False),
        sa.Column("include_item_tax", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("tax_total", sa.Numeric(20, 2), nullable=False, server_default="0"),
    )

    # quote_custom_values
    op.create_table(
        "quote_custom_values",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("quote_id", sa.BigInteger(), sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("field_name", sa.String(), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.UniqueConstraint("quote_id", "field_name", name="uq_quote_custom_field"),
    )

    # invoices
    op.create_table(
        "invoices",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("client_id", sa.BigInteger(), sa.ForeignKey("clients.id"), nullable=False),
        sa.Column("invoice_group_id", sa.BigInteger(), sa.ForeignKey("invoice_groups.id"), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("number", sa.String(), nullable=False),
        sa.Column("created_at", sa.Date(), nullable=False),
        sa.Column("due_at", sa.Date(), nullable=False),
        sa.Column("invoice_status_id", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("url_key", sa.String(32), nullable=False, unique=True),
        sa.Column("item_subtotal", sa.Numeric(20, 2), nullable=False, server_default="0"),
        sa.Column("item_tax_total", sa.Numeric(20, 2), nullable=False, server_default="0"),
        sa.Column("tax_total", sa.Numeric(20, 2), nullable=False, server_default="0"),
        sa.Column("total", sa.Numeric(20, 2), nullable=False, server_default="0"),
        sa.UniqueConstraint("invoice_group_id", "number", name="uq_invoices_group_number"),
    )

    # invoice_items
    op.create_table(
        "invoice_items",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("invoice_id", sa.BigInteger(), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tax_rate_id", sa.BigInteger(), sa.ForeignKey("tax_rates.id"), nullable=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Numeric(20, 4), nullable=False, server_default="0"),
        sa.Column("price", sa.Numeric(20, 4), nullable=False, server_default="0"),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
    )

    # invoice_tax_rates
    op.create_table(
        "invoice_tax_rates",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("invoice_id", sa.BigInteger(), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("tax_rate_id", sa.BigInteger(), sa.ForeignKey("tax_rates.id"), nullable=False),
        sa.Column("include_item_tax", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("tax_total", sa.Numeric(20, 2), nullable=False, server_default="0"),
    )


def downgrade() -> None:
    op.drop_table("invoice_tax_rates")
    op.drop_table("invoice_items")
    op.drop_table("invoices")
    op.drop_table("quote_custom_values")
    op.drop_table("quote_tax_rates")
    op.drop_table("quote_items")
    op.drop_table("quotes")
    op.drop_table("item_lookups")
    op.drop_table("tax_rates")
    op.drop_table("invoice_groups")
    op.drop_table("users")
    op.drop_index("ix_clients_name", table_name="clients")
    op.drop_table("clients")
