"""Validation engine turning raw submissions into validated invoices."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, List, Optional, Tuple, Union

from .errors import ValidationError
from .schemas import FieldError, ValidatedInvoice, ValidatedItem, ValidatedTax
from .utils import has_text, parse_datetime, to_number

logger = logging.getLogger(__name__)

FieldPath = Tuple[Union[str, int], ...]

CURRENCY_LENGTH = 3
MAX_RATE = 100
# SQLite INTEGER is a signed 64-bit value
MAX_QUANTITY = 2**63 - 1

MSG_NOT_OBJECT = "Submission must be an object"
MSG_DATE = "Invalid date format"
MSG_NUMBER = "Invoice number is required"
MSG_CURRENCY = "Currency must be a 3-letter code"
MSG_ITEMS_LIST = "Items must be a list"
MSG_ITEMS_EMPTY = "At least one item is required"
MSG_ITEM_OBJECT = "Item must be an object"
MSG_ITEM_NAME = "Item name is required"
MSG_PRICE = "Price must be positive"
MSG_QUANTITY = "Quantity must be a positive integer"
MSG_TAXES_LIST = "Taxes must be a list"
MSG_TAX_OBJECT = "Tax must be an object"
MSG_TAX_TITLE = "Title is required"
MSG_RATE = "Rate must be between 0 and 100"


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


class InvoiceValidator:
    """Check a submission against every field rule in a single pass.

    ``validate`` either returns a :class:`ValidatedInvoice` with normalized
    types or raises :class:`ValidationError` listing every violation found.
    """

    def validate(self, raw: Any) -> ValidatedInvoice:
        errors: List[FieldError] = []
        invoice = self._check_invoice(raw, errors)
        if errors or invoice is None:
            logger.info("Rejected submission with %d error(s)", len(errors))
            raise ValidationError(errors)
        return invoice

    def _check_invoice(self, raw: Any, errors: List[FieldError]) -> Optional[ValidatedInvoice]:
        if not isinstance(raw, Mapping):
            errors.append(FieldError(path=[], message=MSG_NOT_OBJECT))
            return None

        date = parse_datetime(raw.get("date"))
        if date is None:
            self._fail(errors, ("date",), MSG_DATE)

        number = raw.get("number")
        if not has_text(number):
            self._fail(errors, ("number",), MSG_NUMBER)

        currency = raw.get("currency")
        if not isinstance(currency, str) or len(currency) != CURRENCY_LENGTH:
            self._fail(errors, ("currency",), MSG_CURRENCY)

        items: List[ValidatedItem] = []
        raw_items = raw.get("items")
        if not _is_sequence(raw_items):
            self._fail(errors, ("items",), MSG_ITEMS_LIST)
        elif not raw_items:
            self._fail(errors, ("items",), MSG_ITEMS_EMPTY)
        else:
            for index, raw_item in enumerate(raw_items):
                item = self._check_item(raw_item, ("items", index), errors)
                if item is not None:
                    items.append(item)

        if errors:
            return None
        return ValidatedInvoice(date=date, number=number, currency=currency, items=tuple(items))

    def _check_item(self, raw: Any, path: FieldPath, errors: List[FieldError]) -> Optional[ValidatedItem]:
        if not isinstance(raw, Mapping):
            self._fail(errors, path, MSG_ITEM_OBJECT)
            return None
        before = len(errors)

        name = raw.get("name")
        if not has_text(name):
            self._fail(errors, path + ("name",), MSG_ITEM_NAME)

        price = to_number(raw.get("price"))
        if price is None or price <= 0:
            self._fail(errors, path + ("price",), MSG_PRICE)

        quantity = to_number(raw.get("quantity"))
        if quantity is None or quantity <= 0 or quantity > MAX_QUANTITY or not quantity.is_integer():
            self._fail(errors, path + ("quantity",), MSG_QUANTITY)

        taxes: List[ValidatedTax] = []
        raw_taxes = raw.get("taxes")
        if raw_taxes is None:
            raw_taxes = []
        if not _is_sequence(raw_taxes):
            self._fail(errors, path + ("taxes",), MSG_TAXES_LIST)
        else:
            for index, raw_tax in enumerate(raw_taxes):
                tax = self._check_tax(raw_tax, path + ("taxes", index), errors)
                if tax is not None:
                    taxes.append(tax)

        if len(errors) > before:
            return None
        return ValidatedItem(name=name, price=price, quantity=int(quantity), taxes=tuple(taxes))

    def _check_tax(self, raw: Any, path: FieldPath, errors: List[FieldError]) -> Optional[ValidatedTax]:
        if not isinstance(raw, Mapping):
            self._fail(errors, path, MSG_TAX_OBJECT)
            return None
        before = len(errors)

        title = raw.get("title")
        if not has_text(title):
            self._fail(errors, path + ("title",), MSG_TAX_TITLE)

        rate = to_number(raw.get("rate"))
        if rate is None or rate < 0 or rate > MAX_RATE:
            self._fail(errors, path + ("rate",), MSG_RATE)

        if len(errors) > before:
            return None
        return ValidatedTax(rate=rate, title=title)

    @staticmethod
    def _fail(errors: List[FieldError], path: FieldPath, message: str) -> None:
        errors.append(FieldError(path=list(path), message=message))


def validate_submission(raw: Any) -> ValidatedInvoice:
    """Shortcut for ``InvoiceValidator().validate(raw)``."""
    return InvoiceValidator().validate(raw)
