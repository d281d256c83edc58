"""Tax totals for a document's items and tax rate associations.

Every document (quote or invoice) has two layers of tax:

* item tax: each item may reference one tax rate, applied to that item's
  quantity * price;
* document tax: each tax rate association applies its rate to the item
  subtotal of the whole document. When ``include_item_tax`` is set, the
  item tax is added to the base first, so the association taxes the tax.

Amounts are carried at full precision and rounded to cents (half up) only
when a final total is produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional, Protocol, Sequence

CENTS = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


class TaxableItem(Protocol):
    quantity: Decimal
    price: Decimal
    tax_rate_id: Optional[int]


class TaxAssociation(Protocol):
    tax_rate_id: int
    include_item_tax: bool


def round_currency(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TaxBreakdown:
    item_subtotal: Decimal
    item_tax_total: Decimal
    rate_totals: tuple[Decimal, ...]

    @property
    def tax_total(self) -> Decimal:
        return sum(self.rate_totals, ZERO)

    @property
    def total(self) -> Decimal:
        return self.item_subtotal + self.item_tax_total + self.tax_total


def _percent(percents: Mapping[int, Decimal], tax_rate_id: Optional[int]) -> Decimal:
    if not tax_rate_id:
        return ZERO
    return Decimal(percents.get(tax_rate_id, ZERO)) / HUNDRED


def compute_tax_totals(
    items: Iterable[TaxableItem],
    tax_rates: Sequence[TaxAssociation],
    percents: Mapping[int, Decimal],
) -> TaxBreakdown:
    """Compute subtotal, item tax and one total per association (same order)."""
    subtotal = ZERO
    item_tax = ZERO
    for item in items:
        line = Decimal(item.quantity) * Decimal(item.price)
        subtotal += line
        item_tax += line * _percent(percents, item.tax_rate_id)

    rate_totals = []
    for association in tax_rates:
        base = subtotal + item_tax if association.include_item_tax else subtotal
        rate_totals.append(round_currency(base * _percent(percents, association.tax_rate_id)))

    return TaxBreakdown(
        item_subtotal=round_currency(subtotal),
        item_tax_total=round_currency(item_tax),
        rate_totals=tuple(rate_totals),
    )
