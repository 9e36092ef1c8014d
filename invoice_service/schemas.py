"""Data models used across validator, totals, storage, CLI, and API."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .utils import format_money


class FieldError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    path: List[Union[str, int]] = Field(default_factory=list)
    message: str

    @property
    def key(self) -> str:
        """Dotted form of ``path`` (``items.0.price``), empty for the root."""
        return ".".join(str(part) for part in self.path)


# Validated submissions. Only InvoiceValidator builds these; the field
# constraints repeat the business rules so an invalid instance cannot exist.


class ValidatedTax(BaseModel):
    model_config = ConfigDict(frozen=True)

    rate: float = Field(ge=0, le=100)
    title: str = Field(min_length=1)


class ValidatedItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    price: float = Field(gt=0)
    quantity: int = Field(gt=0)
    taxes: Tuple[ValidatedTax, ...] = ()


class ValidatedInvoice(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: datetime
    number: str = Field(min_length=1)
    currency: str = Field(min_length=3, max_length=3)
    items: Tuple[ValidatedItem, ...] = Field(min_length=1)


# Persisted records, as read back from the store.


class Tax(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    rate: float
    title: str


class Item(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    price: float
    quantity: int
    taxes: List[Tax] = Field(default_factory=list)


class Invoice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    date: datetime
    number: str
    currency: str
    items: List[Item] = Field(default_factory=list)


# Totals


class ItemTotals(BaseModel):
    line_total: Decimal
    tax_total: Decimal
    grand_total: Decimal


class DisplayItemTotals(BaseModel):
    line_total: str
    tax_total: str
    grand_total: str


class DisplayTotals(BaseModel):
    """Totals rounded to 2 places, ready to print."""

    subtotal: str
    tax_total: str
    grand_total: str
    items: List[DisplayItemTotals] = Field(default_factory=list)


class InvoiceTotals(BaseModel):
    subtotal: Decimal
    tax_total: Decimal
    grand_total: Decimal
    items: List[ItemTotals] = Field(default_factory=list)

    def rounded(self) -> DisplayTotals:
        return DisplayTotals(
            subtotal=format_money(self.subtotal),
            tax_total=format_money(self.tax_total),
            grand_total=format_money(self.grand_total),
            items=[
                DisplayItemTotals(
                    line_total=format_money(it.line_total),
                    tax_total=format_money(it.tax_total),
                    grand_total=format_money(it.grand_total),
                )
                for it in self.items
            ],
        )


# API responses


class InvoiceView(BaseModel):
    invoice: Invoice
    totals: DisplayTotals


class ValidateResponse(BaseModel):
    invoice: ValidatedInvoice
    totals: DisplayTotals


class DeleteResponse(BaseModel):
    message: str = "Invoice deleted successfully"


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    error: Union[str, List[FieldError]]
    details: Optional[str] = None
