"""Tests for invoice arithmetic."""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from invoice_service.totals import (
    invoice_grand_total,
    invoice_subtotal,
    invoice_tax_total,
    invoice_totals,
    item_grand_total,
    item_line_total,
    item_tax_total,
    item_totals,
)
from invoice_service.utils import format_money
from invoice_service.validator import validate_submission


def _item(price, quantity, *rates):
    return SimpleNamespace(price=price, quantity=quantity, taxes=[SimpleNamespace(rate=r) for r in rates])


def _invoice(*items):
    return SimpleNamespace(items=list(items))


ITEMS = [
    _item(9.99, 3, 20),
    _item(0.01, 1),
    _item(100, 2, 19, 7.5),
    _item(12.345, 7, 0, 100),
    _item(0.1, 3, 33.333),
]


def test_example_invoice_totals(widget_submission):
    totals = invoice_totals(validate_submission(widget_submission))

    assert totals.subtotal == Decimal("29.97")
    assert totals.tax_total == Decimal("5.994")
    assert totals.grand_total == Decimal("35.964")


@pytest.mark.parametrize("item", ITEMS)
def test_item_grand_total_is_line_plus_tax(item):
    assert item_grand_total(item) == item_line_total(item) + item_tax_total(item)


def test_invoice_grand_total_matches_item_sums():
    invoice = _invoice(*ITEMS)

    grand = invoice_grand_total(invoice)

    assert grand == invoice_subtotal(invoice) + invoice_tax_total(invoice)
    assert grand == sum((item_grand_total(item) for item in ITEMS), Decimal("0"))


def test_multiple_taxes_apply_to_the_line_total():
    item = _item(100, 2, 19, 7.5)

    assert item_line_total(item) == Decimal("200")
    assert item_tax_total(item) == Decimal("53")


def test_no_rounding_before_summing():
    # each item tax is 0.00333; rounding per item would give 0.00 three times
    invoice = _invoice(_item(0.01, 1, 33.3), _item(0.01, 1, 33.3), _item(0.01, 1, 33.3))

    assert invoice_tax_total(invoice) == Decimal("0.00999")
    assert format_money(invoice_tax_total(invoice)) == "0.01"


def test_zero_items_gives_zero_totals():
    totals = invoice_totals(_invoice())

    assert totals.subtotal == totals.tax_total == totals.grand_total == Decimal("0")
    assert totals.items == []


def test_item_without_taxes():
    figures = item_totals(_item(45.5, 1))
    assert (figures.line_total, figures.tax_total, figures.grand_total) == (Decimal("45.5"), 0, Decimal("45.5"))


def test_totals_are_repeatable():
    invoice = _invoice(*ITEMS)
    assert invoice_totals(invoice) == invoice_totals(invoice)


def test_rounded_display_values(widget_submission):
    display = invoice_totals(validate_submission(widget_submission)).rounded()

    assert (display.subtotal, display.tax_total, display.grand_total) == ("29.97", "5.99", "35.96")
    assert display.items[0].grand_total == "35.96"


@pytest.mark.parametrize(
    "value, expected",
    [(Decimal("35.964"), "35.96"), (Decimal("0.005"), "0.01"), (Decimal("2"), "2.00"), (9.99, "9.99")],
)
def test_format_money(value, expected):
    assert format_money(value) == expected
