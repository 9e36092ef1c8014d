import copy
import sqlite3

import pytest
from fastapi.testclient import TestClient

from invoice_service.api import create_app, get_service
from invoice_service.config import Settings
from invoice_service.service import InvoiceService
from invoice_service.storage import SQLiteInvoiceStore

WIDGET_INVOICE = {
    "date": "2024-01-15T10:00:00Z",
    "number": "INV-001",
    "currency": "USD",
    "items": [
        {"name": "Widget", "price": 9.99, "quantity": 3, "taxes": [{"title": "VAT", "rate": 20}]},
    ],
}

TWO_ITEM_INVOICE = {
    "date": "2024-02-01",
    "number": "INV-002",
    "currency": "EUR",
    "items": [
        {"name": "Consulting", "price": 100, "quantity": 2, "taxes": [{"title": "VAT", "rate": 19}]},
        {"name": "Travel", "price": 45.5, "quantity": 1, "taxes": []},
    ],
}


@pytest.fixture
def widget_submission():
    return copy.deepcopy(WIDGET_INVOICE)


@pytest.fixture
def two_item_submission():
    return copy.deepcopy(TWO_ITEM_INVOICE)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "invoices.db"


@pytest.fixture
def store(db_path):
    return SQLiteInvoiceStore(db_path)


@pytest.fixture
def orphan_count(db_path):
    """Count items and taxes whose parent row is gone."""

    def count():
        with sqlite3.connect(db_path) as conn:
            items = conn.execute(
                "SELECT COUNT(*) FROM items WHERE invoice_id NOT IN (SELECT id FROM invoices)"
            ).fetchone()[0]
            taxes = conn.execute(
                "SELECT COUNT(*) FROM taxes WHERE item_id NOT IN (SELECT id FROM items)"
            ).fetchone()[0]
        return items + taxes

    return count


@pytest.fixture
def service(store):
    return InvoiceService(store)


@pytest.fixture
def client(db_path, service):
    app = create_app(Settings(db_path=str(db_path)))
    app.dependency_overrides[get_service] = lambda: service
    with TestClient(app) as test_client:
        yield test_client
