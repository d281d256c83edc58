"""Duplicate a quote under a new client, date and number."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.billing.formatting import increment_date_by_days
from app.billing.lifecycle import load_quote, new_url_key, parse_date, resolve_client
from app.core.config import BillingConfig
from app.core.errors import ValidationFailed
from app.db.crud.invoice_groups import generate_number
from app.db.crud.quotes import create_item, create_quote, create_quote_tax_rate
from app.db.models import QuoteStatus
from app.db.session import transaction
from app.schemas.dto import QuoteCopy

logger = logging.getLogger(__name__)


def copy_quote(db: Session, cmd: QuoteCopy, *, user_id: int, config: BillingConfig) -> int:
    errors: dict[str, list[str]] = {}
    created_at = parse_date(cmd.created_at, "created_at", config, errors)
    if errors:
        raise ValidationFailed(errors)

    source = load_quote(db, cmd.quote_id)

    with transaction(db):
        client_id = resolve_client(db, cmd.client_name)
        number = generate_number(db, cmd.invoice_group_id, created_at)
        quote = create_quote(
            db,
            client_id=client_id,
            invoice_group_id=cmd.invoice_group_id,
            user_id=user_id,
            number=number,
            created_at=created_at,
            expires_at=increment_date_by_days(created_at, config.quotes_expire_after),
            quote_status_id=int(QuoteStatus.initial()),
            url_key=new_url_key(),
            footer=source.footer,
            item_subtotal=source.item_subtotal,
            item_tax_total=source.item_tax_total,
            tax_total=source.tax_total,
            total=source.total,
        )

        for item in source.items:
            create_item(
                db,
                quote,
                {
                    "name": item.name,
                    "description": item.description,
                    "quantity": item.quantity,
                    "price": item.price,
                    "tax_rate_id": item.tax_rate_id,
                    "display_order": item.display_order,
                },
            )

        for qtr in source.tax_rates:
            create_quote_tax_rate(
                db,
                quote,
                tax_rate_id=qtr.tax_rate_id,
                include_item_tax=qtr.include_item_tax,
                tax_total=qtr.tax_total,
            )

    logger.info("Copied quote %s to quote %s number %s", source.id, quote.id, number)
    return quote.id
