"""Dev seed script: create an invoice group and tax rates, then run a quote
through create, edit, copy and conversion without Redis or SMTP. This helps
validate DB models and the billing operations in a controlled way.

Usage:
  python scripts/dev_seed.py

Requirements:
  - DB schema applied (alembic upgrade head)
  - DATABASE_URL configured (e.g., via .env)
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from app.billing.conversion import convert_quote
from app.billing.lifecycle import create_quote, create_quote_tax, update_quote
from app.billing.quote_copy import copy_quote
from app.core.config import get_billing_config
from app.db.crud.quotes import get_quote
from app.db.models import InvoiceGroup, TaxRate
from app.db.session import SessionLocal
from app.schemas.dto import QuoteCopy, QuoteCreate, QuoteTaxCreate, QuoteToInvoice, QuoteUpdate


class PrintEventSink:
    def publish(self, event: str, quote_id: int) -> None:
        print({"event": event, "quote_id": quote_id})


def seed_reference_data(db) -> tuple[int, int, int]:
    group = InvoiceGroup(name="Dev", prefix="DEV-", next_id=1, left_pad=4)
    vat = TaxRate(name="VAT", percent=Decimal("10"))
    levy = TaxRate(name="Levy", percent=Decimal("5"))
    db.add_all([group, vat, levy])
    db.commit()
    return int(group.id), int(vat.id), int(levy.id)


def main() -> None:
    config = get_billing_config()
    today = date.today().strftime(config.date_format)
    db = SessionLocal()
    try:
        group_id, vat_id, levy_id = seed_reference_data(db)

        quote_id = create_quote(
            db,
            QuoteCreate(client_name="ACME Inc", created_at=today, invoice_group_id=group_id),
            user_id=1,
            config=config,
        )
        update_quote(
            db,
            quote_id,
            QuoteUpdate(
                number=f"DEV-Q{quote_id}",
                created_at=today,
                expires_at=today,
                quote_status_id=1,
                items=[
                    {"item_name": "Widget A", "item_quantity": "2", "item_price": "100.00",
                     "item_tax_rate_id": vat_id, "item_order": 1},
                    {"item_name": "Widget B", "item_quantity": "1", "item_price": "1,250.00", "item_order": 2},
                ],
            ),
            config=config,
            events=PrintEventSink(),
        )
        create_quote_tax(db, quote_id, QuoteTaxCreate(tax_rate_id=levy_id, include_item_tax=True))

        copy_id = copy_quote(
            db,
            QuoteCopy(quote_id=quote_id, client_name="Globex", created_at=today, invoice_group_id=group_id),
            user_id=1,
            config=config,
        )
        client_id = get_quote(db, quote_id).client_id
        invoice_id = convert_quote(
            db,
            QuoteToInvoice(quote_id=quote_id, client_id=client_id, created_at=today, invoice_group_id=group_id),
            user_id=1,
            config=config,
        )
        print({"quote_id": quote_id, "copy_id": copy_id, "invoice_id": invoice_id})
    finally:
        db.close()


if __name__ == "__main__":
    main()
