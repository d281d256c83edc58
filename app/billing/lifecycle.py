"""Quote create / update / delete, and item and tax rate maintenance."""

from __future__ import annotations

import logging
import secrets
from datetime import date

from sqlalchemy.orm import Session

from app.billing.amounts import recalculate_quote
from app.billing.events import QUOTE_MODIFIED, EventSink
from app.billing.formatting import increment_date_by_days, unformat_date
from app.billing.items import reconcile_items, validate_items
from app.core.config import BillingConfig
from app.core.errors import NotFound, ValidationFailed
from app.db.crud import quotes as quotes_crud
from app.db.crud.clients import create_client, find_client_id_by_name
from app.db.crud.invoice_groups import generate_number
from app.db.crud.tax_rates import get_percents, get_tax_rate
from app.db.models import Quote, QuoteStatus
from app.db.session import transaction
from app.schemas.dto import QuoteCreate, QuoteTaxCreate, QuoteUpdate

logger = logging.getLogger(__name__)


def new_url_key() -> str:
    return secrets.token_hex(16)


def parse_date(value: str, field: str, config: BillingConfig, errors: dict[str, list[str]]) -> date | None:
    try:
        return unformat_date(value, config)
    except ValueError:
        errors.setdefault(field, []).append("Invalid date.")
        return None


def load_quote(db: Session, quote_id: int) -> Quote:
    quote = quotes_crud.get_quote(db, quote_id)
    if quote is None:
        raise NotFound("Quote", quote_id)
    return quote


def resolve_client(db: Session, name: str) -> int:
    """Find the client by name, creating it when there is none."""
    client_id = find_client_id_by_name(db, name)
    if client_id is None:
        client_id = create_client(db, name)
        logger.info("Created client %s (%r)", client_id, name)
    return client_id


def create_quote(db: Session, cmd: QuoteCreate, *, user_id: int, config: BillingConfig) -> int:
    errors: dict[str, list[str]] = {}
    created_at = parse_date(cmd.created_at, "created_at", config, errors)
    if errors:
        raise ValidationFailed(errors)

    with transaction(db):
        client_id = resolve_client(db, cmd.client_name)
        number = generate_number(db, cmd.invoice_group_id, created_at)
        quote = quotes_crud.create_quote(
            db,
            client_id=client_id,
            invoice_group_id=cmd.invoice_group_id,
            user_id=user_id,
            number=number,
            created_at=created_at,
            expires_at=increment_date_by_days(created_at, config.quotes_expire_after),
            quote_status_id=int(QuoteStatus.initial()),
            url_key=new_url_key(),
            footer=config.quote_footer,
        )

    logger.info("Created quote %s number %s", quote.id, number)
    return quote.id


def _validate_update(db: Session, quote: Quote, cmd: QuoteUpdate, config: BillingConfig):
    errors: dict[str, list[str]] = {}
    created_at = parse_date(cmd.created_at, "created_at", config, errors)
    expires_at = parse_date(cmd.expires_at, "expires_at", config, errors)

    clash = (
        db.query(Quote.id)
        .filter(
            Quote.invoice_group_id == quote.invoice_group_id,
            Quote.number == cmd.number,
            Quote.id != quote.id,
        )
        .first()
    )
    if clash:
        errors.setdefault("number", []).append("This number is already in use.")

    errors.update(validate_items(cmd.items, config))

    wanted = {
        index: item.item_tax_rate_id
        for index, item in enumerate(cmd.items)
        if not item.is_placeholder and item.item_tax_rate_id
    }
    known = get_percents(db, wanted.values())
    for index, tax_rate_id in wanted.items():
        if tax_rate_id not in known:
            errors.setdefault(f"items.{index}.item_tax_rate_id", []).append("Unknown tax rate.")

    if errors:
        raise ValidationFailed(errors)
    return created_at, expires_at


def update_quote(
    db: Session, quote_id: int, cmd: QuoteUpdate, *, config: BillingConfig, events: EventSink
) -> list[int]:
    """Apply a full quote edit: header, custom fields and the item batch.

    Everything is validated before the first write; the writes then run in
    one transaction. Returns the ids of the items that were created or updated.
    """
    quote = load_quote(db, quote_id)
    created_at, expires_at = _validate_update(db, quote, cmd, config)

    with transaction(db):
        quotes_crud.update_quote_header(
            db,
            quote,
            {
                "number": cmd.number,
                "created_at": created_at,
                "expires_at": expires_at,
                "quote_status_id": int(cmd.quote_status_id),
                "footer": cmd.footer,
            },
        )
        quotes_crud.save_custom_values(db, quote, cmd.custom)
        touched = reconcile_items(db, quote, cmd.items, config)
        recalculate_quote(db, quote)

    try:
        events.publish(QUOTE_MODIFIED, quote.id)
    except Exception:
        # the edit is already committed
        logger.exception("Could not publish %s for quote %s", QUOTE_MODIFIED, quote.id)
    return touched


def delete_quote(db: Session, quote_id: int) -> None:
    quote = load_quote(db, quote_id)
    with transaction(db):
        quotes_crud.delete_quote(db, quote)
    logger.info("Deleted quote %s", quote_id)


def delete_quote_item(db: Session, quote_id: int, item_id: int) -> None:
    quote = load_quote(db, quote_id)
    item = quotes_crud.get_item(db, item_id)
    if item is None or item.quote_id != quote.id:
        raise NotFound("Quote item", item_id)
    with transaction(db):
        quotes_crud.delete_item(db, quote, item)
        recalculate_quote(db, quote)


def create_quote_tax(db: Session, quote_id: int, cmd: QuoteTaxCreate) -> int:
    quote = load_quote(db, quote_id)
    if get_tax_rate(db, cmd.tax_rate_id) is None:
        raise NotFound("Tax rate", cmd.tax_rate_id)
    with transaction(db):
        qtr = quotes_crud.create_quote_tax_rate(
            db, quote, tax_rate_id=cmd.tax_rate_id, include_item_tax=cmd.include_item_tax
        )
        recalculate_quote(db, quote)
    return qtr.id


def delete_quote_tax(db: Session, quote_id: int, quote_tax_rate_id: int) -> None:
    quote = load_quote(db, quote_id)
    qtr = quotes_crud.get_quote_tax_rate(db, quote_tax_rate_id)
    if qtr is None or qtr.quote_id != quote.id:
        raise NotFound("Quote tax rate", quote_tax_rate_id)
    with transaction(db):
        quotes_crud.delete_quote_tax_rate(db, quote, qtr)
        recalculate_quote(db, quote)
