"""Editable invoice draft for form clients.

A draft mirrors what a form holds while the user types. Text fields may
still be empty or invalid; price, quantity and rate are coerced to numbers
as they are set, so ``update_item`` and ``update_tax`` reject text that is
not a number with a pydantic ``ValidationError``. Every operation returns a
new draft and leaves the original untouched. ``to_submission`` hands the draft
to the validator; ``preview`` feeds it to the totals engine for live display.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Tuple

from pydantic import BaseModel, ConfigDict

from .schemas import Invoice, InvoiceTotals
from .totals import invoice_totals


class DraftTax(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    rate: float = 0


class DraftItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    price: float = 0
    quantity: float = 1
    taxes: Tuple[DraftTax, ...] = ()


def _replace_at(values: tuple, index: int, value: Any) -> tuple:
    _check_index(values, index)
    return values[:index] + (value,) + values[index + 1 :]


def _remove_at(values: tuple, index: int) -> tuple:
    _check_index(values, index)
    return values[:index] + values[index + 1 :]


def _check_index(values: tuple, index: int) -> None:
    if not 0 <= index < len(values):
        raise IndexError(f"index {index} out of range for {len(values)} entries")


class InvoiceDraft(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str = ""
    number: str = ""
    currency: str = "USD"
    items: Tuple[DraftItem, ...] = ()

    @classmethod
    def new(cls) -> "InvoiceDraft":
        return cls(date=datetime.now(timezone.utc).isoformat())

    @classmethod
    def from_invoice(cls, invoice: Invoice) -> "InvoiceDraft":
        """Start editing a stored invoice. Ids are dropped; updates rebuild items."""
        return cls(
            date=invoice.date.isoformat(),
            number=invoice.number,
            currency=invoice.currency,
            items=tuple(
                DraftItem(
                    name=item.name,
                    price=item.price,
                    quantity=item.quantity,
                    taxes=tuple(DraftTax(title=tax.title, rate=tax.rate) for tax in item.taxes),
                )
                for item in invoice.items
            ),
        )

    # Header fields

    def set_field(self, name: str, value: str) -> "InvoiceDraft":
        """Set ``date``, ``number`` or ``currency``; values are kept as typed."""
        if name not in ("date", "number", "currency"):
            raise KeyError(name)
        return self.model_copy(update={name: value})

    # Items

    def add_item(self, item: DraftItem | None = None) -> "InvoiceDraft":
        return self.model_copy(update={"items": self.items + (item or DraftItem(),)})

    def replace_item(self, index: int, item: DraftItem) -> "InvoiceDraft":
        return self.model_copy(update={"items": _replace_at(self.items, index, item)})

    def update_item(self, index: int, **fields: Any) -> "InvoiceDraft":
        _check_index(self.items, index)
        item = self.items[index]
        return self.replace_item(index, DraftItem.model_validate({**item.model_dump(), **fields}))

    def remove_item(self, index: int) -> "InvoiceDraft":
        return self.model_copy(update={"items": _remove_at(self.items, index)})

    # Taxes

    def add_tax(self, item_index: int, tax: DraftTax | None = None) -> "InvoiceDraft":
        _check_index(self.items, item_index)
        item = self.items[item_index]
        return self.replace_item(item_index, item.model_copy(update={"taxes": item.taxes + (tax or DraftTax(),)}))

    def update_tax(self, item_index: int, tax_index: int, **fields: Any) -> "InvoiceDraft":
        _check_index(self.items, item_index)
        item = self.items[item_index]
        _check_index(item.taxes, tax_index)
        tax = DraftTax.model_validate({**item.taxes[tax_index].model_dump(), **fields})
        return self.replace_item(item_index, item.model_copy(update={"taxes": _replace_at(item.taxes, tax_index, tax)}))

    def remove_tax(self, item_index: int, tax_index: int) -> "InvoiceDraft":
        _check_index(self.items, item_index)
        item = self.items[item_index]
        return self.replace_item(item_index, item.model_copy(update={"taxes": _remove_at(item.taxes, tax_index)}))

    # Output

    def to_submission(self) -> dict:
        return self.model_dump(mode="json")

    def preview(self) -> InvoiceTotals:
        return invoice_totals(self)
