"""Domain errors raised by the billing operations."""

from __future__ import annotations

from typing import Mapping


class QuoteError(Exception):
    """Base error for quote and invoice operations."""


class ValidationFailed(QuoteError):
    """Field-level validation failure. Nothing has been written."""

    def __init__(self, errors: Mapping[str, list[str]]) -> None:
        self.errors: dict[str, list[str]] = {k: list(v) for k, v in errors.items()}
        super().__init__(f"Validation failed: {', '.join(sorted(self.errors))}")


class NotFound(QuoteError):
    """A referenced entity does not exist."""

    def __init__(self, entity: str, entity_id) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidGroup(NotFound):
    def __init__(self, group_id) -> None:
        super().__init__("Invoice group", group_id)


class TransportFailure(QuoteError):
    """Mail dispatch failed. Not retried."""


class DuplicateNumber(QuoteError):
    """Two documents received the same number within one group."""

    def __init__(self, group_id, number: str) -> None:
        self.group_id = group_id
        self.number = number
        super().__init__(f"Number {number} already used in invoice group {group_id}")
