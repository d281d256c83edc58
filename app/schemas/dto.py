from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.core.errors import ValidationFailed
from app.db.models import QuoteStatus

M = TypeVar("M", bound=BaseModel)


class Command(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


def _decode_json(value: Any) -> Any:
    # form posts carry items and custom fields as JSON text
    if isinstance(value, str):
        try:
            return json.loads(value) if value else None
        except json.JSONDecodeError as e:
            raise ValueError("must be valid JSON") from e
    return value


def validation_errors(exc: ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"]) or "__root__"
        errors.setdefault(field, []).append(err["msg"])
    return errors


def parse_command(model: type[M], payload: Any) -> M:
    """Validate a raw payload into a command, raising ValidationFailed on bad input."""
    try:
        return model.model_validate(payload or {})
    except ValidationError as e:
        raise ValidationFailed(validation_errors(e)) from e


class QuoteCreate(Command):
    client_name: str = Field(min_length=1)
    created_at: str = Field(min_length=1)
    invoice_group_id: int


class ItemInput(Command):
    item_id: int | None = None
    # accepted for form compatibility; ownership always comes from the quote being updated
    quote_id: int | None = None
    item_name: str | None = None
    item_description: str | None = None
    item_quantity: str | int | float | None = None
    item_price: str | int | float | None = None
    item_tax_rate_id: int | None = None
    item_order: int = 0
    save_item_as_lookup: bool = False

    @property
    def is_placeholder(self) -> bool:
        return not (self.item_name or "").strip()


class QuoteUpdate(Command):
    number: str = Field(min_length=1)
    created_at: str = Field(min_length=1)
    expires_at: str = Field(min_length=1)
    quote_status_id: QuoteStatus
    footer: str | None = None
    items: list[ItemInput] = Field(default_factory=list)
    custom: dict[str, Any] = Field(default_factory=dict)

    @field_validator("items", mode="before")
    @classmethod
    def _items_blob(cls, v: Any) -> Any:
        v = _decode_json(v)
        return [] if v is None else v

    @field_validator("custom", mode="before")
    @classmethod
    def _custom_blob(cls, v: Any) -> Any:
        v = _decode_json(v)
        return {} if v is None else v


class QuoteTaxCreate(Command):
    tax_rate_id: int
    include_item_tax: bool = False


class QuoteCopy(Command):
    quote_id: int
    client_name: str = Field(min_length=1)
    created_at: str = Field(min_length=1)
    invoice_group_id: int


class QuoteToInvoice(Command):
    quote_id: int
    client_id: int
    created_at: str = Field(min_length=1)
    invoice_group_id: int


class MailQuote(Command):
    to: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    cc: str | None = None
    subject: str = Field(min_length=1)


class QuoteItemResponse(BaseModel):
    id: int
    name: str
    description: str | None = None
    quantity: Decimal
    price: Decimal
    tax_rate_id: int | None = None
    display_order: int


class QuoteTaxRateResponse(BaseModel):
    id: int
    tax_rate_id: int
    include_item_tax: bool
    tax_total: Decimal


class QuoteResponse(BaseModel):
    id: int
    number: str
    client_id: int
    client_name: str | None = None
    invoice_group_id: int
    created_at: date
    expires_at: date
    quote_status_id: int
    status: str
    footer: str | None = None
    url_key: str
    item_subtotal: Decimal
    item_tax_total: Decimal
    tax_total: Decimal
    total: Decimal
    items: list[QuoteItemResponse]
    tax_rates: list[QuoteTaxRateResponse]
    custom: dict[str, str | None]
    mail_configured: bool = False


class InvoiceGroupResponse(BaseModel):
    id: int
    name: str
    next_number: str


class InvoiceResponse(BaseModel):
    id: int
    number: str
    client_id: int
    invoice_group_id: int
    created_at: date
    due_at: date
    invoice_status_id: int
    status: str
    url_key: str
    item_subtotal: Decimal
    item_tax_total: Decimal
    tax_total: Decimal
    total: Decimal
    # invoice rows carry the same fields as quote rows
    items: list[QuoteItemResponse]
    tax_rates: list[QuoteTaxRateResponse]
