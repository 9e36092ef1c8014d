"""Invoice arithmetic: line, tax and grand totals.

Every function here is pure and works on any item-shaped object (``price``,
``quantity`` and ``taxes`` with a ``rate``): validated submissions, persisted
invoices and form drafts alike. Values are accumulated as exact decimals and
never rounded here; rounding belongs to :func:`invoice_service.utils.format_money`.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable

from .schemas import InvoiceTotals, ItemTotals
from .utils import to_decimal

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def item_line_total(item: Any) -> Decimal:
    return to_decimal(item.price) * to_decimal(item.quantity)


def item_tax_total(item: Any) -> Decimal:
    line_total = item_line_total(item)
    return _sum(line_total * to_decimal(tax.rate) / HUNDRED for tax in item.taxes)


def item_grand_total(item: Any) -> Decimal:
    return item_line_total(item) + item_tax_total(item)


def invoice_subtotal(invoice: Any) -> Decimal:
    return _sum(item_line_total(item) for item in invoice.items)


def invoice_tax_total(invoice: Any) -> Decimal:
    return _sum(item_tax_total(item) for item in invoice.items)


def invoice_grand_total(invoice: Any) -> Decimal:
    return invoice_subtotal(invoice) + invoice_tax_total(invoice)


def item_totals(item: Any) -> ItemTotals:
    line_total = item_line_total(item)
    tax_total = item_tax_total(item)
    return ItemTotals(line_total=line_total, tax_total=tax_total, grand_total=line_total + tax_total)


def invoice_totals(invoice: Any) -> InvoiceTotals:
    """All figures for one invoice in a single pass; zero items gives zeros."""
    items = [item_totals(item) for item in invoice.items]
    subtotal = _sum(it.line_total for it in items)
    tax_total = _sum(it.tax_total for it in items)
    return InvoiceTotals(subtotal=subtotal, tax_total=tax_total, grand_total=subtotal + tax_total, items=items)
