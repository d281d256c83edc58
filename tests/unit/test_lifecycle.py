from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from app.billing import items as items_module
from app.billing import lifecycle
from app.billing.events import QUOTE_MODIFIED
from app.billing.lifecycle import (
    create_quote,
    create_quote_tax,
    delete_quote,
    delete_quote_item,
    delete_quote_tax,
    update_quote,
)
from app.core.errors import DuplicateNumber, InvalidGroup, NotFound, ValidationFailed
from app.db.crud.quotes import get_quote
from app.db.models import (
    Client,
    InvoiceGroup,
    Quote,
    QuoteCustomValue,
    QuoteItem,
    QuoteStatus,
    QuoteTaxRate,
)
from app.schemas.dto import QuoteCreate, QuoteTaxCreate, QuoteUpdate
from conftest import item_row


def edit(quote, items=(), **overrides):
    fields = {
        "number": quote.number,
        "created_at": "01/15/2026",
        "expires_at": "02/15/2026",
        "quote_status_id": 2,
        "footer": "Updated footer",
        "items": list(items),
        "custom": {},
    }
    fields.update(overrides)
    return QuoteUpdate(**fields)


class TestCreate:
    def test_new_quote_defaults(self, db, refs, config):
        quote_id = create_quote(
            db,
            QuoteCreate(client_name="ACME Corp", created_at="01/15/2026", invoice_group_id=refs.group_id),
            user_id=7,
            config=config,
        )
        quote = get_quote(db, quote_id)
        assert quote.number == "QUO-0001"
        assert quote.created_at == date(2026, 1, 15)
        assert quote.expires_at == date(2026, 1, 30)
        assert quote.status is QuoteStatus.DRAFT
        assert quote.user_id == 7
        assert len(quote.url_key) == 32
        assert quote.items == [] and quote.tax_rates == []
        assert db.get(Client, quote.client_id).name == "ACME Corp"

    def test_existing_client_is_reused(self, db, make_quote):
        first = get_quote(db, make_quote(client_name="Initech"))
        second = get_quote(db, make_quote(client_name="Initech"))
        assert first.client_id == second.client_id
        assert db.query(Client).filter(Client.name == "Initech").count() == 1
        assert first.number != second.number
        assert first.url_key != second.url_key

    def test_bad_date_writes_nothing(self, db, refs, config):
        with pytest.raises(ValidationFailed) as exc:
            create_quote(
                db,
                QuoteCreate(client_name="New Co", created_at="31/31/2026", invoice_group_id=refs.group_id),
                user_id=1,
                config=config,
            )
        assert "created_at" in exc.value.errors
        assert db.query(Client).count() == 0

    def test_unknown_group_rolls_back_client(self, db, refs, config):
        with pytest.raises(InvalidGroup):
            create_quote(
                db,
                QuoteCreate(client_name="New Co", created_at="01/15/2026", invoice_group_id=404),
                user_id=1,
                config=config,
            )
        assert db.query(Client).count() == 0

    def test_number_clash_is_duplicate_number(self, db, refs, make_quote, config):
        make_quote()
        db.get(InvoiceGroup, refs.group_id).next_id = 1
        db.commit()
        with pytest.raises(DuplicateNumber):
            make_quote()
        assert db.query(Quote).count() == 1


class TestUpdate:
    def test_header_items_custom_and_event(self, db, make_quote, config, events, refs):
        quote_id = make_quote()
        quote = get_quote(db, quote_id)

        touched = update_quote(
            db,
            quote_id,
            edit(
                quote,
                items=[item_row("Widget", "2", "10.00", tax_rate_id=refs.rate_a)],
                number="Q-CUSTOM",
                custom={"po_number": "PO-77", "project": None},
            ),
            config=config,
            events=events,
        )

        quote = get_quote(db, quote_id)
        assert quote.number == "Q-CUSTOM"
        assert quote.expires_at == date(2026, 2, 15)
        assert quote.status is QuoteStatus.SENT
        assert quote.footer == "Updated footer"
        assert [i.id for i in quote.items] == touched
        assert quote.item_subtotal == Decimal("20.00")
        assert quote.item_tax_total == Decimal("2.00")
        assert quote.total == Decimal("22.00")
        assert {c.field_name: c.value for c in quote.custom_values} == {"po_number": "PO-77", "project": None}
        assert events.events[-1] == (QUOTE_MODIFIED, quote_id)

    def test_custom_values_are_replaced(self, db, make_quote, config, events):
        quote_id = make_quote(custom={"a": "1", "b": "2"})
        update_quote(db, quote_id, edit(get_quote(db, quote_id), custom={"b": "3"}), config=config, events=events)
        values = db.query(QuoteCustomValue).filter(QuoteCustomValue.quote_id == quote_id).all()
        assert [(v.field_name, v.value) for v in values] == [("b", "3")]

    def test_blank_item_name_is_silently_skipped(self, db, make_quote, config, events):
        quote_id = make_quote()
        touched = update_quote(
            db, quote_id, edit(get_quote(db, quote_id), items=[item_row("  ", "1", "1")]), config=config, events=events
        )
        assert touched == []
        assert db.query(QuoteItem).count() == 0

    def test_invalid_item_blocks_every_write(self, db, make_quote, config, events):
        quote_id = make_quote(items=[item_row("Keep", "1", "1")])
        before = get_quote(db, quote_id).number
        events.events.clear()

        with pytest.raises(ValidationFailed) as exc:
            update_quote(
                db,
                quote_id,
                edit(
                    get_quote(db, quote_id),
                    items=[item_row("Fine", "1", "1"), item_row("Broken", "lots", "1")],
                    number="CHANGED",
                ),
                config=config,
                events=events,
            )

        assert exc.value.errors == {"items.1.item_quantity": ["Must be a number."]}
        db.expire_all()
        assert db.get(Quote, quote_id).number == before
        assert [i.name for i in db.query(QuoteItem)] == ["Keep"]
        assert events.events == []

    def test_unknown_item_tax_rate_is_a_validation_error(self, db, make_quote, config, events):
        quote_id = make_quote()
        with pytest.raises(ValidationFailed) as exc:
            update_quote(
                db,
                quote_id,
                edit(get_quote(db, quote_id), items=[item_row("X", "1", "1", tax_rate_id=999)]),
                config=config,
                events=events,
            )
        assert "items.0.item_tax_rate_id" in exc.value.errors

    def test_number_taken_in_group(self, db, make_quote, config, events):
        taken = get_quote(db, make_quote()).number
        quote_id = make_quote()
        with pytest.raises(ValidationFailed) as exc:
            update_quote(db, quote_id, edit(get_quote(db, quote_id), number=taken), config=config, events=events)
        assert "number" in exc.value.errors

    def test_missing_quote(self, db, refs, config, events):
        with pytest.raises(NotFound):
            update_quote(db, 123, edit(Quote(number="X")), config=config, events=events)


class TestTaxesAndDeletes:
    def test_tax_association_recalculates(self, db, make_quote, refs):
        quote_id = make_quote(
            items=[item_row("Widget", "2", "10.00", tax_rate_id=refs.rate_a)],
            taxes=[(refs.rate_a, False), (refs.rate_b, True)],
        )
        quote = get_quote(db, quote_id)
        assert [t.tax_total for t in quote.tax_rates] == [Decimal("2.00"), Decimal("1.10")]
        assert quote.tax_total == Decimal("3.10")
        assert quote.total == Decimal("25.10")

        delete_quote_tax(db, quote_id, quote.tax_rates[0].id)
        quote = get_quote(db, quote_id)
        assert quote.tax_total == Decimal("1.10")
        assert db.query(QuoteTaxRate).count() == 1

    def test_unknown_tax_rate(self, db, make_quote):
        with pytest.raises(NotFound):
            create_quote_tax(db, make_quote(), QuoteTaxCreate(tax_rate_id=999))

    def test_delete_item_belongs_to_quote(self, db, make_quote):
        a = make_quote(items=[item_row("A", "1", "5")])
        b = make_quote(items=[item_row("B", "1", "8")])
        b_item = get_quote(db, b).items[0]

        with pytest.raises(NotFound):
            delete_quote_item(db, a, b_item.id)

        delete_quote_item(db, b, b_item.id)
        quote = get_quote(db, b)
        assert quote.items == []
        assert quote.total == Decimal("0.00")

    def test_delete_quote_cascades(self, db, make_quote, refs):
        quote_id = make_quote(
            items=[item_row("A", "1", "5"), item_row("B", "2", "5")],
            taxes=[(refs.rate_a, False)],
            custom={"k": "v"},
        )
        keep_id = make_quote(items=[item_row("C", "1", "1")])

        delete_quote(db, quote_id)

        assert db.get(Quote, quote_id) is None
        assert db.query(QuoteItem).filter(QuoteItem.quote_id == quote_id).count() == 0
        assert db.query(QuoteTaxRate).count() == 0
        assert db.query(QuoteCustomValue).count() == 0
        assert db.query(QuoteItem).filter(QuoteItem.quote_id == keep_id).count() == 1

        with pytest.raises(NotFound):
            delete_quote(db, quote_id)


class BrokenEventSink:
    def publish(self, event, quote_id):
        raise ConnectionError("redis unavailable")


class TestUpdateAtomicity:
    def test_unpublished_event_does_not_fail_a_committed_update(self, db, make_quote, config, caplog):
        quote_id = make_quote()

        touched = update_quote(
            db,
            quote_id,
            edit(get_quote(db, quote_id), items=[item_row("Widget", "1", "4.00")]),
            config=config,
            events=BrokenEventSink(),
        )

        db.expire_all()
        assert [i.id for i in get_quote(db, quote_id).items] == touched
        assert get_quote(db, quote_id).total == Decimal("4.00")
        assert "Could not publish quote.modified" in caplog.text

    def test_item_write_failure_rolls_back_header_and_custom(self, db, make_quote, config, events, monkeypatch):
        quote_id = make_quote(items=[item_row("Keep", "1", "1")], custom={"po": "old"})
        number = get_quote(db, quote_id).number
        events.events.clear()

        def fail(*args, **kwargs):
            raise OperationalError("INSERT INTO quote_items", {}, Exception("disk I/O error"))

        monkeypatch.setattr(items_module, "create_item", fail)

        with pytest.raises(OperationalError):
            update_quote(
                db,
                quote_id,
                edit(
                    get_quote(db, quote_id),
                    items=[item_row("New", "1", "1")],
                    number="CHANGED",
                    custom={"po": "new"},
                ),
                config=config,
                events=events,
            )

        db.expire_all()
        quote = get_quote(db, quote_id)
        assert quote.number == number
        assert {c.field_name: c.value for c in quote.custom_values} == {"po": "old"}
        assert [i.name for i in quote.items] == ["Keep"]
        assert events.events == []

    def test_number_taken_after_the_clash_check(self, db, make_quote, config, events, monkeypatch):
        taken = get_quote(db, make_quote()).number
        quote_id = make_quote()
        # the other quote claimed the number between validation and the write
        monkeypatch.setattr(
            lifecycle, "_validate_update", lambda db, quote, cmd, config: (date(2026, 1, 15), date(2026, 2, 15))
        )

        with pytest.raises(DuplicateNumber):
            update_quote(db, quote_id, edit(get_quote(db, quote_id), number=taken), config=config, events=events)

        db.expire_all()
        assert db.get(Quote, quote_id).number != taken
