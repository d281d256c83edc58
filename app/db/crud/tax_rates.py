"""Tax rate definitions."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.db.models import TaxRate


def get_tax_rate(db: Session, tax_rate_id: int) -> Optional[TaxRate]:
    return db.get(TaxRate, tax_rate_id)


def get_percents(db: Session, tax_rate_ids: Iterable[int | None]) -> dict[int, Decimal]:
    ids = {i for i in tax_rate_ids if i}
    if not ids:
        return {}
    rates = db.query(TaxRate).filter(TaxRate.id.in_(ids)).all()
    return {r.id: Decimal(r.percent) for r in rates}
