from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.billing.conversion import convert_quote
from app.billing.events import EventSink, QueueEventSink
from app.billing.lifecycle import (
    create_quote,
    create_quote_tax,
    delete_quote,
    delete_quote_item,
    delete_quote_tax,
    load_quote,
    update_quote,
)
from app.billing.mail import Mailer, SmtpMailer, mail_quote
from app.billing.quote_copy import copy_quote
from app.core.config import BillingConfig, get_billing_config, get_settings
from app.core.errors import ValidationFailed
from app.core.security import api_key_auth, current_user_id
from app.db.crud import quotes as quotes_crud
from app.db.models import Quote, QuoteStatus
from app.db.session import get_db
from app.schemas.dto import (
    MailQuote,
    QuoteCopy,
    QuoteCreate,
    QuoteItemResponse,
    QuoteResponse,
    QuoteTaxCreate,
    QuoteTaxRateResponse,
    QuoteToInvoice,
    QuoteUpdate,
    parse_command,
)
from app.workers.jobs import recalculate_quote_amounts
from app.workers.queue import get_queue

router = APIRouter(dependencies=[Depends(api_key_auth)])


def get_event_sink() -> EventSink:
    return QueueEventSink()


def get_mailer() -> Mailer:
    return SmtpMailer.from_settings(get_settings())


def _to_dto(quote: Quote, *, mail_configured: bool) -> QuoteResponse:
    return QuoteResponse(
        id=int(quote.id),
        number=quote.number,
        client_id=int(quote.client_id),
        client_name=quote.client.name if quote.client else None,
        invoice_group_id=int(quote.invoice_group_id),
        created_at=quote.created_at,
        expires_at=quote.expires_at,
        quote_status_id=quote.quote_status_id,
        status=quote.status.name.lower(),
        footer=quote.footer,
        url_key=quote.url_key,
        item_subtotal=quote.item_subtotal,
        item_tax_total=quote.item_tax_total,
        tax_total=quote.tax_total,
        total=quote.total,
        items=[
            QuoteItemResponse(
                id=int(i.id),
                name=i.name,
                description=i.description,
                quantity=i.quantity,
                price=i.price,
                tax_rate_id=i.tax_rate_id,
                display_order=i.display_order,
            )
            for i in quote.items
        ],
        tax_rates=[
            QuoteTaxRateResponse(
                id=int(t.id),
                tax_rate_id=t.tax_rate_id,
                include_item_tax=t.include_item_tax,
                tax_total=t.tax_total,
            )
            for t in quote.tax_rates
        ],
        custom={cv.field_name: cv.value for cv in quote.custom_values},
        mail_configured=mail_configured,
    )


@router.post("")
def store(
    payload: dict | None = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user_id),
    config: BillingConfig = Depends(get_billing_config),
) -> dict[str, Any]:
    cmd = parse_command(QuoteCreate, payload)
    quote_id = create_quote(db, cmd, user_id=user_id, config=config)
    return {"success": True, "id": quote_id}


@router.get("", response_model=list[QuoteResponse])
def index(
    status: str = Query(default="all", description="Status name, or \"all\""),
    filter: Optional[str] = Query(default=None, description="Match quote number or client name"),
    db: Session = Depends(get_db),
    config: BillingConfig = Depends(get_billing_config),
) -> list[QuoteResponse]:
    status_id = None
    if status != "all":
        try:
            status_id = int(QuoteStatus[status.upper()])
        except KeyError:
            raise ValidationFailed({"status": ["Unknown status."]}) from None
    quotes = quotes_crud.list_quotes(db, status_id=status_id, text=filter)
    return [_to_dto(q, mail_configured=config.mail_configured) for q in quotes]


@router.get("/{quote_id}", response_model=QuoteResponse)
def show(
    quote_id: int,
    db: Session = Depends(get_db),
    config: BillingConfig = Depends(get_billing_config),
) -> QuoteResponse:
    return _to_dto(load_quote(db, quote_id), mail_configured=config.mail_configured)


@router.put("/{quote_id}")
def update(
    quote_id: int,
    payload: dict | None = None,
    db: Session = Depends(get_db),
    config: BillingConfig = Depends(get_billing_config),
    events: EventSink = Depends(get_event_sink),
) -> dict[str, Any]:
    cmd = parse_command(QuoteUpdate, payload)
    item_ids = update_quote(db, quote_id, cmd, config=config, events=events)
    return {"success": True, "item_ids": item_ids}


@router.delete("/{quote_id}")
def delete(quote_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    delete_quote(db, quote_id)
    return {"success": True}


@router.delete("/{quote_id}/items/{item_id}")
def delete_item(quote_id: int, item_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    delete_quote_item(db, quote_id, item_id)
    return {"success": True}


@router.post("/{quote_id}/taxes")
def save_quote_tax(
    quote_id: int, payload: dict | None = None, db: Session = Depends(get_db)
) -> dict[str, Any]:
    cmd = parse_command(QuoteTaxCreate, payload)
    quote_tax_rate_id = create_quote_tax(db, quote_id, cmd)
    return {"success": True, "id": quote_tax_rate_id}


@router.delete("/{quote_id}/taxes/{quote_tax_rate_id}")
def remove_quote_tax(
    quote_id: int, quote_tax_rate_id: int, db: Session = Depends(get_db)
) -> dict[str, Any]:
    delete_quote_tax(db, quote_id, quote_tax_rate_id)
    return {"success": True}


@router.post("/{quote_id}/copy")
def copy(
    quote_id: int,
    payload: dict | None = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user_id),
    config: BillingConfig = Depends(get_billing_config),
) -> dict[str, Any]:
    cmd = parse_command(QuoteCopy, {**(payload or {}), "quote_id": quote_id})
    new_id = copy_quote(db, cmd, user_id=user_id, config=config)
    return {"success": True, "id": new_id}


@router.post("/{quote_id}/invoice")
def quote_to_invoice(
    quote_id: int,
    payload: dict | None = None,
    db: Session = Depends(get_db),
    user_id: int = Depends(current_user_id),
    config: BillingConfig = Depends(get_billing_config),
) -> dict[str, Any]:
    cmd = parse_command(QuoteToInvoice, {**(payload or {}), "quote_id": quote_id})
    invoice_id = convert_quote(db, cmd, user_id=user_id, config=config)
    return {"success": True, "id": invoice_id}


@router.post("/{quote_id}/mail")
def mail(
    quote_id: int,
    payload: dict | None = None,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    config: BillingConfig = Depends(get_billing_config),
) -> dict[str, Any]:
    cmd = parse_command(MailQuote, payload)
    mail_quote(db, quote_id, cmd, mailer=mailer, config=config)
    return {"success": True}


@router.post("/{quote_id}/recalculate")
def recalculate(quote_id: int) -> dict[str, Any]:
    """Enqueue recalculation of the stored amounts and return the job id."""
    q = get_queue()
    job = q.enqueue(recalculate_quote_amounts, quote_id)
    return {"status": "accepted", "job_id": job.get_id(), "quote_id": quote_id}
