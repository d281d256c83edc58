from __future__ import annotations

import enum
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

# SQLite only autoincrements INTEGER primary keys
IdType = BigInteger().with_variant(Integer, "sqlite")


class QuoteStatus(enum.IntEnum):
    DRAFT = 1
    SENT = 2
    VIEWED = 3
    APPROVED = 4
    REJECTED = 5
    CANCELED = 6

    @classmethod
    def initial(cls) -> "QuoteStatus":
        return min(cls)


class InvoiceStatus(enum.IntEnum):
    DRAFT = 1
    SENT = 2
    VIEWED = 3
    PAID = 4
    CANCELED = 5

    @classmethod
    def initial(cls) -> "InvoiceStatus":
        return min(cls)


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String, nullable=True)


class InvoiceGroup(Base):
    __tablename__ = "invoice_groups"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    prefix: Mapped[str] = mapped_column(String, nullable=False, default="")
    next_id: Mapped[int] = mapped_column(BigInteger, nullable=False, default=1)
    left_pad: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    prefix_year: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    prefix_month: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class TaxRate(Base):
    __tablename__ = "tax_rates"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    percent: Mapped[Decimal] = mapped_column(Numeric(10, 3), nullable=False)


class ItemLookup(Base):
    __tablename__ = "item_lookups"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(20, 4), nullable=False, default=Decimal("0"))


class Quote(Base):
    __tablename__ = "quotes"
    __table_args__ = (
        UniqueConstraint("invoice_group_id", "number", name="uq_quotes_group_number"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False)
    invoice_group_id: Mapped[int] = mapped_column(ForeignKey("invoice_groups.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    number: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[date] = mapped_column(Date, nullable=False)
    expires_at: Mapped[date] = mapped_column(Date, nullable=False)
    quote_status_id: Mapped[int] = mapped_column(Integer, nullable=False, default=int(QuoteStatus.DRAFT))
    footer: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    url_key: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)

    # amount snapshot, recalculated whenever items or tax rates change
    item_subtotal: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=Decimal("0"))
    item_tax_total: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=Decimal("0"))
    tax_total: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=Decimal("0"))
    total: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=Decimal("0"))

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    client: Mapped[Client] = relationship()
    invoice_group: Mapped[InvoiceGroup] = relationship()
    # user_id is not a foreign key, so the owner row may be missing
    user: Mapped[Optional[User]] = relationship(
        primaryjoin="foreign(Quote.user_id) == User.id", viewonly=True
    )
    items: Mapped[List[QuoteItem]] = relationship(
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by=lambda: [QuoteItem.display_order, QuoteItem.id],
    )  # type: ignore[name-defined]
    tax_rates: Mapped[List[QuoteTaxRate]] = relationship(
        back_populates="quote", cascade="all, delete-orphan", order_by="QuoteTaxRate.id"
    )  # type: ignore[name-defined]
    custom_values: Mapped[List[QuoteCustomValue]] = relationship(
        back_populates="quote", cascade="all, delete-orphan"
    )  # type: ignore[name-defined]

    @property
    def status(self) -> QuoteStatus:
        return QuoteStatus(self.quote_status_id)


class QuoteItem(Base):
    __tablename__ = "quote_items"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    quote_id: Mapped[int] = mapped_column(ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False)
    tax_rate_id: Mapped[Optional[int]] = mapped_column(ForeignKey("tax_rates.id"), nullable=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(20, 4), nullable=False, default=Decimal("0"))
    price: Mapped[Decimal] = mapped_column(Numeric(20, 4), nullable=False, default=Decimal("0"))
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    quote: Mapped[Quote] = relationship(back_populates="items")  # type: ignore[name-defined]


class QuoteTaxRate(Base):
    __tablename__ = "quote_tax_rates"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    quote_id: Mapped[int] = mapped_column(ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False)
    tax_rate_id: Mapped[int] = mapped_column(ForeignKey("tax_rates.id"), nullable=False)
    include_item_tax: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tax_total: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=Decimal("0"))

    quote: Mapped[Quote] = relationship(back_populates="tax_rates")  # type: ignore[name-defined]
    tax_rate: Mapped[TaxRate] = relationship()


class QuoteCustomValue(Base):
    __tablename__ = "quote_custom_values"
    __table_args__ = (
        UniqueConstraint("quote_id", "field_name", name="uq_quote_custom_field"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    quote_id: Mapped[int] = mapped_column(ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False)
    field_name: Mapped[str] = mapped_column(String, nullable=False)
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    quote: Mapped[Quote] = relationship(back_populates="custom_values")  # type: ignore[name-defined]


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("invoice_group_id", "number", name="uq_invoices_group_number"),
    )

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"), nullable=False)
    invoice_group_id: Mapped[int] = mapped_column(ForeignKey("invoice_groups.id"), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    number: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[date] = mapped_column(Date, nullable=False)
    due_at: Mapped[date] = mapped_column(Date, nullable=False)
    invoice_status_id: Mapped[int] = mapped_column(Integer, nullable=False, default=int(InvoiceStatus.DRAFT))
    url_key: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)

    item_subtotal: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=Decimal("0"))
    item_tax_total: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=Decimal("0"))
    tax_total: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=Decimal("0"))
    total: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=Decimal("0"))

    client: Mapped[Client] = relationship()
    items: Mapped[List[InvoiceItem]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by=lambda: [InvoiceItem.display_order, InvoiceItem.id],
    )  # type: ignore[name-defined]
    tax_rates: Mapped[List[InvoiceTaxRate]] = relationship(
        back_populates="invoice", cascade="all, delete-orphan", order_by="InvoiceTaxRate.id"
    )  # type: ignore[name-defined]

    @property
    def status(self) -> InvoiceStatus:
        return InvoiceStatus(self.invoice_status_id)


class InvoiceItem(Base):
    __tablename__ = "invoice_items"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False)
    tax_rate_id: Mapped[Optional[int]] = mapped_column(ForeignKey("tax_rates.id"), nullable=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    quantity: Mapped[Decimal] = mapped_column(Numeric(20, 4), nullable=False, default=Decimal("0"))
    price: Mapped[Decimal] = mapped_column(Numeric(20, 4), nullable=False, default=Decimal("0"))
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    invoice: Mapped[Invoice] = relationship(back_populates="items")  # type: ignore[name-defined]


class InvoiceTaxRate(Base):
    __tablename__ = "invoice_tax_rates"

    id: Mapped[int] = mapped_column(IdType, primary_key=True, autoincrement=True)
    invoice_id: Mapped[int] = mapped_column(ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False)
    tax_rate_id: Mapped[int] = mapped_column(ForeignKey("tax_rates.id"), nullable=False)
    include_item_tax: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    tax_total: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False, default=Decimal("0"))

    invoice: Mapped[Invoice] = relationship(back_populates="tax_rates")  # type: ignore[name-defined]
