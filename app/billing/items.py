"""Reconcile submitted quote items against the stored ones."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.billing.formatting import unformat_number
from app.core.config import BillingConfig
from app.db.crud.item_lookups import create_item_lookup
from app.db.crud.quotes import create_item, get_item, update_item
from app.db.models import Quote
from app.schemas.dto import ItemInput

logger = logging.getLogger(__name__)


def validate_items(items: Sequence[ItemInput], config: BillingConfig) -> dict[str, list[str]]:
    """Return field errors for the batch, keyed ``items.<index>.<field>``."""
    errors: dict[str, list[str]] = {}
    for index, item in enumerate(items):
        if item.is_placeholder:
            continue
        for field in ("item_quantity", "item_price"):
            raw = getattr(item, field)
            key = f"items.{index}.{field}"
            if raw is None or str(raw).strip() == "":
                errors.setdefault(key, []).append("This field is required.")
                continue
            try:
                unformat_number(raw, config)
            except ValueError:
                errors.setdefault(key, []).append("Must be a number.")
    return errors


def item_record(item: ItemInput, config: BillingConfig) -> dict[str, Any]:
    return {
        "name": (item.item_name or "").strip(),
        "description": item.item_description,
        "quantity": unformat_number(item.item_quantity, config),
        "price": unformat_number(item.item_price, config),
        "tax_rate_id": item.item_tax_rate_id or None,
        "display_order": item.item_order,
    }


def _save_lookup(db: Session, record: dict[str, Any]) -> None:
    # catalog writes are best effort and never undo the item itself
    try:
        with db.begin_nested():
            create_item_lookup(
                db, name=record["name"], description=record["description"], price=record["price"]
            )
    except SQLAlchemyError:
        logger.exception("Could not save %r to the item lookup catalog", record["name"])


def reconcile_items(
    db: Session, quote: Quote, items: Sequence[ItemInput], config: BillingConfig
) -> list[int]:
    """Create or update the quote's items from a submitted batch.

    Rows with a blank name are placeholders and are skipped. Rows without an
    ``item_id`` become new items; rows with one update that item, provided it
    belongs to ``quote``. Anything else is skipped and logged. Returns the ids
    of the touched items in processing order.
    """
    touched: list[int] = []
    for item in sorted(items, key=lambda i: i.item_order):
        if item.is_placeholder:
            continue
        record = item_record(item, config)

        if not item.item_id:
            row = create_item(db, quote, record)
        else:
            row = get_item(db, item.item_id)
            if row is None or row.quote_id != quote.id:
                logger.warning("Skipping item %s: not an item of quote %s", item.item_id, quote.id)
                continue
            update_item(db, row, record)
        touched.append(row.id)

        if item.save_item_as_lookup:
            _save_lookup(db, record)
    return touched
