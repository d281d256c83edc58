from __future__ import annotations

import os

# Must run before any app module builds its engine from settings.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("API_KEY", "test-key")

from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import BillingConfig
from app.db import models  # noqa: F401
from app.db.base import Base
from app.db.models import InvoiceGroup, TaxRate


def make_engine(url: str = "sqlite://", begin: str = "BEGIN", **kwargs):
    """SQLite engine with foreign keys and working SAVEPOINTs."""
    connect_args = {"check_same_thread": False, **kwargs.pop("connect_args", {})}
    engine = create_engine(url, connect_args=connect_args, **kwargs)

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql(begin)

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def engine():
    engine = make_engine(poolclass=StaticPool)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def config() -> BillingConfig:
    return BillingConfig(
        quotes_expire_after=15,
        invoices_due_after=30,
        quote_footer="Thank you for your business.",
        date_format="%m/%d/%Y",
    )


@pytest.fixture()
def refs(db) -> SimpleNamespace:
    """An invoice group and two tax rates (10% and 5%)."""
    group = InvoiceGroup(name="Quotes", prefix="QUO-", next_id=1, left_pad=4)
    other_group = InvoiceGroup(name="Invoices", prefix="INV-", next_id=100, left_pad=0)
    rate_a = TaxRate(name="Rate A", percent=Decimal("10"))
    rate_b = TaxRate(name="Rate B", percent=Decimal("5"))
    db.add_all([group, other_group, rate_a, rate_b])
    db.commit()
    return SimpleNamespace(
        group_id=group.id, invoice_group_id=other_group.id, rate_a=rate_a.id, rate_b=rate_b.id
    )


class RecordingEventSink:
    def __init__(self) -> None:
        self.events: list[tuple[str, int]] = []

    def publish(self, event: str, quote_id: int) -> None:
        self.events.append((event, quote_id))


@pytest.fixture()
def events() -> RecordingEventSink:
    return RecordingEventSink()


def item_row(name, quantity, price, *, tax_rate_id=None, order=0, item_id=None, **extra):
    return {
        "item_id": item_id,
        "item_name": name,
        "item_description": extra.pop("description", f"{name} description" if name else None),
        "item_quantity": quantity,
        "item_price": price,
        "item_tax_rate_id": tax_rate_id,
        "item_order": order,
        **extra,
    }


@pytest.fixture()
def make_quote(db, refs, config, events):
    """Create a quote through the lifecycle, optionally with items and tax rates."""
    from app.billing.lifecycle import create_quote, create_quote_tax, update_quote
    from app.db.crud.quotes import get_quote
    from app.schemas.dto import QuoteCreate, QuoteTaxCreate, QuoteUpdate

    def _make(items=(), taxes=(), client_name="ACME Corp", created_at="01/15/2026", custom=None):
        quote_id = create_quote(
            db,
            QuoteCreate(client_name=client_name, created_at=created_at, invoice_group_id=refs.group_id),
            user_id=1,
            config=config,
        )
        if items or custom:
            quote = get_quote(db, quote_id)
            update_quote(
                db,
                quote_id,
                QuoteUpdate(
                    number=quote.number,
                    created_at=created_at,
                    expires_at="01/30/2026",
                    quote_status_id=1,
                    items=list(items),
                    custom=custom or {},
                ),
                config=config,
                events=events,
            )
        for tax_rate_id, include_item_tax in taxes:
            create_quote_tax(
                db, quote_id, QuoteTaxCreate(tax_rate_id=tax_rate_id, include_item_tax=include_item_tax)
            )
        return quote_id

    return _make
