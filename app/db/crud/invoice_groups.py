"""Invoice group numbering shared by quotes and invoices."""

from __future__ import annotations

from datetime import date

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.errors import InvalidGroup
from app.db.models import InvoiceGroup


def format_number(group: InvoiceGroup, counter: int, on: date) -> str:
    number = group.prefix or ""
    if group.prefix_year:
        number += f"{on:%Y}"
    if group.prefix_month:
        number += f"{on:%m}"
    return number + str(counter).zfill(group.left_pad or 0)


def get_invoice_group(db: Session, group_id: int) -> InvoiceGroup:
    group = db.get(InvoiceGroup, group_id, populate_existing=True)
    if group is None:
        raise InvalidGroup(group_id)
    return group


def generate_number(db: Session, group_id: int, on: date | None = None) -> str:
    """Allocate the next number in a group.

    The counter is advanced by a single UPDATE ... RETURNING, so the row stays
    locked until the caller's transaction ends and concurrent callers on the
    same group are serialized.
    """
    stmt = (
        update(InvoiceGroup)
        .where(InvoiceGroup.id == group_id)
        .values(next_id=InvoiceGroup.next_id + 1)
        .returning(InvoiceGroup.next_id)
        .execution_options(synchronize_session=False)
    )
    next_id = db.execute(stmt).scalar_one_or_none()
    if next_id is None:
        raise InvalidGroup(group_id)
    group = get_invoice_group(db, group_id)
    return format_number(group, next_id - 1, on or date.today())


def preview_number(db: Session, group_id: int, on: date | None = None) -> str:
    group = get_invoice_group(db, group_id)
    return format_number(group, group.next_id, on or date.today())


def list_invoice_groups(db: Session) -> list[InvoiceGroup]:
    return db.query(InvoiceGroup).order_by(InvoiceGroup.name.asc()).all()
