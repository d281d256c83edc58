from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.core.security import api_key_auth
from app.db.crud.invoices import get_invoice
from app.db.session import get_db
from app.schemas.dto import InvoiceResponse, QuoteItemResponse, QuoteTaxRateResponse

router = APIRouter(dependencies=[Depends(api_key_auth)])


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def show(invoice_id: int, db: Session = Depends(get_db)) -> InvoiceResponse:
    invoice = get_invoice(db, invoice_id)
    if invoice is None:
        raise NotFound("Invoice", invoice_id)
    return InvoiceResponse(
        id=int(invoice.id),
        number=invoice.number,
        client_id=int(invoice.client_id),
        invoice_group_id=int(invoice.invoice_group_id),
        created_at=invoice.created_at,
        due_at=invoice.due_at,
        invoice_status_id=invoice.invoice_status_id,
        status=invoice.status.name.lower(),
        url_key=invoice.url_key,
        item_subtotal=invoice.item_subtotal,
        item_tax_total=invoice.item_tax_total,
        tax_total=invoice.tax_total,
        total=invoice.total,
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
            for i in invoice.items
        ],
        tax_rates=[
            QuoteTaxRateResponse(
                id=int(t.id),
                tax_rate_id=t.tax_rate_id,
                include_item_tax=t.include_item_tax,
                tax_total=t.tax_total,
            )
            for t in invoice.tax_rates
        ],
    )
