"""Tests for the submission validator."""

from datetime import datetime, timezone

import pytest

from invoice_service.errors import ValidationError
from invoice_service.schemas import ValidatedInvoice
from invoice_service.validator import InvoiceValidator, validate_submission


def _errors(raw):
    with pytest.raises(ValidationError) as excinfo:
        InvoiceValidator().validate(raw)
    return {err.key: err.message for err in excinfo.value.errors}


def _with_item(submission, **fields):
    submission["items"][0].update(fields)
    return submission


def _with_tax(submission, **fields):
    submission["items"][0]["taxes"][0].update(fields)
    return submission


def test_accepts_and_normalizes_example(widget_submission):
    result = validate_submission(widget_submission)

    assert isinstance(result, ValidatedInvoice)
    assert result.date == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    assert result.number == "INV-001"
    assert result.currency == "USD"
    item = result.items[0]
    assert (item.name, item.price, item.quantity) == ("Widget", 9.99, 3)
    assert item.taxes[0].title == "VAT"
    assert item.taxes[0].rate == 20


def test_numeric_text_is_converted(widget_submission):
    _with_item(widget_submission, price="9.99", quantity="3")
    _with_tax(widget_submission, rate="20")

    item = validate_submission(widget_submission).items[0]

    assert item.price == 9.99
    assert item.quantity == 3 and isinstance(item.quantity, int)
    assert item.taxes[0].rate == 20.0


def test_integral_float_quantity_is_accepted(widget_submission):
    _with_item(widget_submission, quantity=2.0)
    assert validate_submission(widget_submission).items[0].quantity == 2


def test_missing_taxes_means_no_taxes(widget_submission):
    del widget_submission["items"][0]["taxes"]
    assert validate_submission(widget_submission).items[0].taxes == ()


@pytest.mark.parametrize("rate", [100.01, -1, "abc", None, True])
def test_rejects_bad_rate(widget_submission, rate):
    errors = _errors(_with_tax(widget_submission, rate=rate))
    assert errors == {"items.0.taxes.0.rate": "Rate must be between 0 and 100"}


@pytest.mark.parametrize("price", [0, -5, "free", None, float("nan"), float("inf")])
def test_rejects_bad_price(widget_submission, price):
    errors = _errors(_with_item(widget_submission, price=price))
    assert errors == {"items.0.price": "Price must be positive"}


@pytest.mark.parametrize("quantity", [0, 1.5, -2, "1.5", None, False])
def test_rejects_bad_quantity(widget_submission, quantity):
    errors = _errors(_with_item(widget_submission, quantity=quantity))
    assert errors == {"items.0.quantity": "Quantity must be a positive integer"}


@pytest.mark.parametrize("currency", ["US", "USDX", "", None, 840])
def test_rejects_bad_currency(widget_submission, currency):
    widget_submission["currency"] = currency
    assert _errors(widget_submission) == {"currency": "Currency must be a 3-letter code"}


@pytest.mark.parametrize("number", ["", "   ", None, 17])
def test_rejects_missing_number(widget_submission, number):
    widget_submission["number"] = number
    assert _errors(widget_submission) == {"number": "Invoice number is required"}


@pytest.mark.parametrize("date", ["not-a-date", "", "2024-02-30", None, 1705312800])
def test_rejects_bad_date(widget_submission, date):
    widget_submission["date"] = date
    assert _errors(widget_submission) == {"date": "Invalid date format"}


def test_accepts_other_date_formats(widget_submission):
    widget_submission["date"] = "January 15, 2024"
    assert validate_submission(widget_submission).date == datetime(2024, 1, 15)


def test_rejects_empty_items(widget_submission):
    widget_submission["items"] = []
    assert _errors(widget_submission) == {"items": "At least one item is required"}


def test_rejects_items_that_are_not_a_list(widget_submission):
    widget_submission["items"] = {"name": "Widget"}
    assert _errors(widget_submission) == {"items": "Items must be a list"}


@pytest.mark.parametrize("raw", [None, [], "invoice", 42])
def test_rejects_malformed_submission(raw):
    assert _errors(raw) == {"": "Submission must be an object"}


def test_collects_every_violation_in_one_pass():
    raw = {
        "date": "nope",
        "number": "",
        "currency": "US",
        "items": [
            {"name": "", "price": 0, "quantity": 1.5, "taxes": [{"title": "", "rate": 101}]},
            {"name": "Ok", "price": 1, "quantity": 1, "taxes": [{"title": "GST", "rate": 5}, "bad"]},
            "not an item",
        ],
    }

    errors = _errors(raw)

    assert errors == {
        "date": "Invalid date format",
        "number": "Invoice number is required",
        "currency": "Currency must be a 3-letter code",
        "items.0.name": "Item name is required",
        "items.0.price": "Price must be positive",
        "items.0.quantity": "Quantity must be a positive integer",
        "items.0.taxes.0.title": "Title is required",
        "items.0.taxes.0.rate": "Rate must be between 0 and 100",
        "items.1.taxes.1": "Tax must be an object",
        "items.2": "Item must be an object",
    }


def test_error_paths_keep_indices_as_integers(widget_submission):
    _with_tax(widget_submission, rate=-1)
    with pytest.raises(ValidationError) as excinfo:
        validate_submission(widget_submission)
    assert excinfo.value.as_list() == [
        {"path": ["items", 0, "taxes", 0, "rate"], "message": "Rate must be between 0 and 100"}
    ]


def test_boundaries_are_inclusive(widget_submission):
    widget_submission["items"] = [
        {"name": "Min", "price": 0.01, "quantity": 1, "taxes": [{"title": "Zero", "rate": 0}]},
        {"name": "Max", "price": 1, "quantity": 1, "taxes": [{"title": "Full", "rate": 100}]},
    ]

    result = validate_submission(widget_submission)

    assert [item.price for item in result.items] == [0.01, 1]
    assert [item.taxes[0].rate for item in result.items] == [0, 100]


@pytest.mark.parametrize("date", ["2024-01-15T10:00:00+25:00", "2024-01-15T10:00:00-24:00"])
def test_rejects_offsets_datetime_cannot_hold(widget_submission, date):
    widget_submission["date"] = date
    assert _errors(widget_submission) == {"date": "Invalid date format"}


@pytest.mark.parametrize("quantity", [10**19, 2**63, "1e30"])
def test_rejects_quantity_beyond_64_bits(widget_submission, quantity):
    errors = _errors(_with_item(widget_submission, quantity=quantity))
    assert errors == {"items.0.quantity": "Quantity must be a positive integer"}
