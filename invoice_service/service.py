"""Invoice lifecycle: create, read, list, update and delete whole aggregates."""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from .errors import NotFound
from .schemas import Invoice, InvoiceTotals, InvoiceView
from .storage import SQLiteInvoiceStore
from .totals import invoice_totals
from .validator import InvoiceValidator

logger = logging.getLogger(__name__)


class InvoiceService:
    """Validate submissions and apply them to the store as full replacements.

    An invoice is either absent or present with its complete item/tax
    subtree. Updates never merge line items: the old subtree is dropped and
    rebuilt with fresh ids while the invoice keeps its own id.
    """

    def __init__(self, store: SQLiteInvoiceStore, validator: Optional[InvoiceValidator] = None) -> None:
        self.store = store
        self.validator = validator or InvoiceValidator()

    def create(self, raw: Any) -> Invoice:
        validated = self.validator.validate(raw)
        invoice = self.store.insert(validated)
        logger.info("Created invoice %s (%s) with %d item(s)", invoice.id, invoice.number, len(invoice.items))
        return invoice

    def get(self, invoice_id: str) -> Invoice:
        invoice = self.store.fetch(invoice_id)
        if invoice is None:
            raise NotFound(invoice_id)
        return invoice

    def list(self) -> List[Invoice]:
        return self.store.fetch_all()

    def update(self, invoice_id: str, raw: Any) -> Invoice:
        validated = self.validator.validate(raw)
        invoice = self.store.replace(invoice_id, validated)
        if invoice is None:
            raise NotFound(invoice_id)
        logger.info("Updated invoice %s with %d item(s)", invoice_id, len(invoice.items))
        return invoice

    def delete(self, invoice_id: str) -> None:
        if not self.store.remove(invoice_id):
            raise NotFound(invoice_id)
        logger.info("Deleted invoice %s", invoice_id)

    def totals(self, invoice_id: str) -> InvoiceTotals:
        return invoice_totals(self.get(invoice_id))

    def view(self, invoice_id: str) -> InvoiceView:
        invoice = self.get(invoice_id)
        return InvoiceView(invoice=invoice, totals=invoice_totals(invoice).rounded())
