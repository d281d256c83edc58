"""Quote to invoice conversion."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.billing.formatting import increment_date_by_days
from app.billing.lifecycle import load_quote, new_url_key, parse_date
from app.core.config import BillingConfig
from app.core.errors import NotFound, ValidationFailed
from app.db.crud.clients import get_client
from app.db.crud.invoice_groups import generate_number
from app.db.crud.invoices import create_invoice, create_invoice_item, create_invoice_tax_rate
from app.db.models import InvoiceStatus
from app.db.session import transaction
from app.schemas.dto import QuoteToInvoice

logger = logging.getLogger(__name__)


def convert_quote(db: Session, cmd: QuoteToInvoice, *, user_id: int, config: BillingConfig) -> int:
    """Create an invoice that is a structural copy of the quote.

    Items and tax rate associations are copied field for field, including the
    stored tax totals; nothing is recomputed and the quote is left untouched.
    """
    errors: dict[str, list[str]] = {}
    created_at = parse_date(cmd.created_at, "created_at", config, errors)
    if errors:
        raise ValidationFailed(errors)

    quote = load_quote(db, cmd.quote_id)
    if get_client(db, cmd.client_id) is None:
        raise NotFound("Client", cmd.client_id)

    with transaction(db):
        number = generate_number(db, cmd.invoice_group_id, created_at)
        invoice = create_invoice(
            db,
            client_id=cmd.client_id,
            invoice_group_id=cmd.invoice_group_id,
            user_id=user_id,
            number=number,
            created_at=created_at,
            due_at=increment_date_by_days(created_at, config.invoices_due_after),
            invoice_status_id=int(InvoiceStatus.initial()),
            url_key=new_url_key(),
            item_subtotal=quote.item_subtotal,
            item_tax_total=quote.item_tax_total,
            tax_total=quote.tax_total,
            total=quote.total,
        )

        for item in quote.items:
            create_invoice_item(
                db,
                invoice.id,
                name=item.name,
                description=item.description,
                quantity=item.quantity,
                price=item.price,
                tax_rate_id=item.tax_rate_id,
                display_order=item.display_order,
            )

        for qtr in quote.tax_rates:
            create_invoice_tax_rate(
                db,
                invoice.id,
                tax_rate_id=qtr.tax_rate_id,
                include_item_tax=qtr.include_item_tax,
                tax_total=qtr.tax_total,
            )

    logger.info("Converted quote %s to invoice %s number %s", quote.id, invoice.id, number)
    return invoice.id
