"""Invoices CRUD used by quote conversion."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.orm import Session, selectinload

from app.db.crud.quotes import flush_numbered
from app.db.models import Invoice, InvoiceItem, InvoiceTaxRate


def get_invoice(db: Session, invoice_id: int) -> Optional[Invoice]:
    return (
        db.query(Invoice)
        .options(selectinload(Invoice.items), selectinload(Invoice.tax_rates))
        .filter(Invoice.id == invoice_id)
        .one_or_none()
    )


def create_invoice(db: Session, **fields: Any) -> Invoice:
    invoice = Invoice(**fields)
    db.add(invoice)
    flush_numbered(db, invoice.invoice_group_id, invoice.number)
    return invoice


def create_invoice_item(db: Session, invoice_id: int, **fields: Any) -> InvoiceItem:
    item = InvoiceItem(invoice_id=invoice_id, **fields)
    db.add(item)
    db.flush()
    return item


def create_invoice_tax_rate(db: Session, invoice_id: int, **fields: Any) -> InvoiceTaxRate:
    itr = InvoiceTaxRate(invoice_id=invoice_id, **fields)
    db.add(itr)
    db.flush()
    return itr
