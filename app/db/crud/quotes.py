"""Quotes CRUD: header, items, tax rates and custom values."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import DuplicateNumber
from app.db.models import Client, Quote, QuoteCustomValue, QuoteItem, QuoteTaxRate


def flush_numbered(db: Session, group_id: int, number: str) -> None:
    """Flush a freshly numbered document, mapping a number clash to DuplicateNumber."""
    try:
        db.flush()
    except IntegrityError as e:
        if "number" in str(e.orig):
            raise DuplicateNumber(group_id, number) from e
        raise


def get_quote(db: Session, quote_id: int) -> Optional[Quote]:
    return (
        db.query(Quote)
        .options(
            selectinload(Quote.items),
            selectinload(Quote.tax_rates),
            selectinload(Quote.custom_values),
        )
        .filter(Quote.id == quote_id)
        .one_or_none()
    )


def list_quotes(
    db: Session, *, status_id: Optional[int] = None, text: Optional[str] = None
) -> list[Quote]:
    """Quotes newest first, optionally narrowed to one status and a free-text match.

    The text filter matches the quote number or the client name, case-insensitively.
    """
    q = (
        db.query(Quote)
        .join(Quote.client)
        .options(
            selectinload(Quote.items),
            selectinload(Quote.tax_rates),
            selectinload(Quote.custom_values),
        )
    )
    if status_id is not None:
        q = q.filter(Quote.quote_status_id == status_id)
    if text:
        pattern = f"%{text.lower()}%"
        q = q.filter(or_(func.lower(Quote.number).like(pattern), func.lower(Client.name).like(pattern)))
    return q.order_by(Quote.created_at.desc(), Quote.id.desc()).all()


def create_quote(db: Session, **fields: Any) -> Quote:
    quote = Quote(**fields)
    db.add(quote)
    flush_numbered(db, quote.invoice_group_id, quote.number)
    return quote


def update_quote_header(db: Session, quote: Quote, fields: Mapping[str, Any]) -> Quote:
    for key, value in fields.items():
        setattr(quote, key, value)
    flush_numbered(db, quote.invoice_group_id, quote.number)
    return quote


def delete_quote(db: Session, quote: Quote) -> None:
    db.delete(quote)
    db.flush()


def get_item(db: Session, item_id: int) -> Optional[QuoteItem]:
    return db.get(QuoteItem, item_id)


def create_item(db: Session, quote: Quote, record: Mapping[str, Any]) -> QuoteItem:
    item = QuoteItem(**record)
    quote.items.append(item)
    db.flush()
    return item


def update_item(db: Session, item: QuoteItem, record: Mapping[str, Any]) -> QuoteItem:
    for key, value in record.items():
        setattr(item, key, value)
    db.flush()
    return item


def delete_item(db: Session, quote: Quote, item: QuoteItem) -> None:
    quote.items.remove(item)
    db.flush()


def get_quote_tax_rate(db: Session, quote_tax_rate_id: int) -> Optional[QuoteTaxRate]:
    return db.get(QuoteTaxRate, quote_tax_rate_id)


def create_quote_tax_rate(
    db: Session, quote: Quote, *, tax_rate_id: int, include_item_tax: bool, tax_total=None
) -> QuoteTaxRate:
    qtr = QuoteTaxRate(tax_rate_id=tax_rate_id, include_item_tax=include_item_tax)
    if tax_total is not None:
        qtr.tax_total = tax_total
    quote.tax_rates.append(qtr)
    db.flush()
    return qtr


def delete_quote_tax_rate(db: Session, quote: Quote, qtr: QuoteTaxRate) -> None:
    quote.tax_rates.remove(qtr)
    db.flush()


def save_custom_values(db: Session, quote: Quote, values: Mapping[str, Any]) -> None:
    """Replace the quote's custom field values with `values`."""
    existing = {cv.field_name: cv for cv in quote.custom_values}
    for field_name, cv in existing.items():
        if field_name not in values:
            quote.custom_values.remove(cv)
    for field_name, value in values.items():
        text = None if value is None else str(value)
        if field_name in existing:
            existing[field_name].value = text
        else:
            quote.custom_values.append(QuoteCustomValue(field_name=field_name, value=text))
    db.flush()
