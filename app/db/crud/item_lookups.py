"""Reusable item catalog."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from app.db.models import ItemLookup


def create_item_lookup(db: Session, *, name: str, description: str | None, price: Decimal) -> int:
    lookup = ItemLookup(name=name, description=description, price=price)
    db.add(lookup)
    db.flush()
    return lookup.id
