"""Locale-aware unformatting of user-entered numbers and dates."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from app.core.config import BillingConfig


def unformat_number(value: Any, config: BillingConfig) -> Decimal:
    """Turn a locale-formatted number such as "1,234.50" into a Decimal.

    Raises ValueError when the value is not a number in the configured locale.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    text = str(value or "").strip()
    if config.thousands_separator:
        text = text.replace(config.thousands_separator, "")
    if config.decimal_point and config.decimal_point != ".":
        text = text.replace(config.decimal_point, ".")
    try:
        number = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"{value!r} is not a number") from e
    if not number.is_finite():
        raise ValueError(f"{value!r} is not a number")
    return number


def unformat_date(value: Any, config: BillingConfig) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    try:
        return datetime.strptime(text, config.date_format).date()
    except ValueError:
        # ISO dates are always accepted
        return date.fromisoformat(text)


def format_date(value: date, config: BillingConfig) -> str:
    return value.strftime(config.date_format)


def increment_date_by_days(value: date, days: int) -> date:
    return value + timedelta(days=days)
