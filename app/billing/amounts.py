"""Persist the computed amount snapshot of a quote."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.billing.taxes import TaxBreakdown, compute_tax_totals
from app.db.crud.tax_rates import get_percents
from app.db.models import Quote

logger = logging.getLogger(__name__)


def recalculate_quote(db: Session, quote: Quote) -> TaxBreakdown:
    percents = get_percents(
        db,
        [i.tax_rate_id for i in quote.items] + [t.tax_rate_id for t in quote.tax_rates],
    )
    breakdown = compute_tax_totals(quote.items, quote.tax_rates, percents)

    for association, total in zip(quote.tax_rates, breakdown.rate_totals):
        association.tax_total = total
    quote.item_subtotal = breakdown.item_subtotal
    quote.item_tax_total = breakdown.item_tax_total
    quote.tax_total = breakdown.tax_total
    quote.total = breakdown.total
    db.flush()

    logger.debug("Quote %s recalculated: total=%s", quote.id, quote.total)
    return breakdown
