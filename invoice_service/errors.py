"""Error taxonomy shared by the validator, store, service, API and CLI."""
from __future__ import annotations

from typing import List

from .schemas import FieldError


class InvoiceServiceError(Exception):
    """Base class for every error raised by the invoice service."""


class ValidationError(InvoiceServiceError):
    """A submission broke one or more field rules.

    ``errors`` holds one :class:`FieldError` per violated field, addressed by
    path (``["items", 0, "taxes", 1, "rate"]``) so a form can show each
    message next to its input.
    """

    def __init__(self, errors: List[FieldError]) -> None:
        self.errors = list(errors)
        super().__init__(f"{len(self.errors)} validation error(s)")

    def as_list(self) -> list[dict]:
        return [err.model_dump() for err in self.errors]


class NotFound(InvoiceServiceError):
    def __init__(self, invoice_id: str) -> None:
        self.invoice_id = invoice_id
        super().__init__(f"Invoice {invoice_id} not found")


class PersistenceError(InvoiceServiceError):
    """Storage failure (connectivity, constraint violation, aborted transaction)."""
