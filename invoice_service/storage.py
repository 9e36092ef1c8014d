"""SQLite storage for the invoice -> items -> taxes hierarchy."""
from __future__ import annotations

import logging
import sqlite3
import uuid
from collections import defaultdict
from contextlib import closing, contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from .errors import PersistenceError
from .schemas import Invoice, Item, Tax, ValidatedInvoice, ValidatedItem

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS invoices (
    id TEXT PRIMARY KEY,
    date TEXT NOT NULL,
    number TEXT NOT NULL,
    currency TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS items (
    id TEXT PRIMARY KEY,
    invoice_id TEXT NOT NULL REFERENCES invoices(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    name TEXT NOT NULL,
    price REAL NOT NULL,
    quantity INTEGER NOT NULL
);
CREATE TABLE IF NOT EXISTS taxes (
    id TEXT PRIMARY KEY,
    item_id TEXT NOT NULL REFERENCES items(id) ON DELETE CASCADE,
    position INTEGER NOT NULL,
    rate REAL NOT NULL,
    title TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_items_invoice_id ON items(invoice_id);
CREATE INDEX IF NOT EXISTS idx_taxes_item_id ON taxes(item_id);
"""


def new_id() -> str:
    return str(uuid.uuid4())


class SQLiteInvoiceStore:
    """Persist invoices with their items and taxes.

    Each public method opens its own connection and runs in one
    transaction, so a failure part way through leaves no partial tree
    behind. Every :class:`sqlite3.Error`, and the :class:`OverflowError` sqlite3
    raises for integers beyond 64 bits, is re-raised as :class:`PersistenceError`.
    """

    def __init__(self, db_path: str | Path, timeout: float = 5.0) -> None:
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            with closing(self._connect()) as conn:
                with conn:
                    yield conn
        except (sqlite3.Error, OverflowError) as exc:
            logger.error("Storage operation failed on %s: %s", self.db_path, exc)
            raise PersistenceError(str(exc)) from exc

    def _init_schema(self) -> None:
        with self._transaction() as conn:
            conn.executescript(SCHEMA)
        logger.debug("Database schema initialized: %s", self.db_path)

    # Public API

    def insert(self, invoice: ValidatedInvoice) -> Invoice:
        invoice_id = new_id()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO invoices(id, date, number, currency) VALUES(?, ?, ?, ?)",
                (invoice_id, invoice.date.isoformat(), invoice.number, invoice.currency),
            )
            self._insert_items(conn, invoice_id, invoice.items)
            return self._load(conn, invoice_id)

    def fetch(self, invoice_id: str) -> Optional[Invoice]:
        with self._transaction() as conn:
            self._begin_read(conn)
            return self._load(conn, invoice_id)

    def fetch_all(self) -> List[Invoice]:
        with self._transaction() as conn:
            self._begin_read(conn)
            rows = conn.execute("SELECT * FROM invoices ORDER BY rowid").fetchall()
            items = self._items_by_invoice(conn, None)
        return [self._to_invoice(row, items.get(row["id"], [])) for row in rows]

    def replace(self, invoice_id: str, invoice: ValidatedInvoice) -> Optional[Invoice]:
        """Overwrite the invoice fields and rebuild its item/tax subtree.

        Returns None, changing nothing, when ``invoice_id`` does not exist.
        """
        with self._transaction() as conn:
            cursor = conn.execute(
                "UPDATE invoices SET date = ?, number = ?, currency = ? WHERE id = ?",
                (invoice.date.isoformat(), invoice.number, invoice.currency, invoice_id),
            )
            if cursor.rowcount == 0:
                return None
            # taxes go with their items via ON DELETE CASCADE
            conn.execute("DELETE FROM items WHERE invoice_id = ?", (invoice_id,))
            self._insert_items(conn, invoice_id, invoice.items)
            return self._load(conn, invoice_id)

    def remove(self, invoice_id: str) -> bool:
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM invoices WHERE id = ?", (invoice_id,))
            return cursor.rowcount > 0

    # Internals

    @staticmethod
    def _begin_read(conn: sqlite3.Connection) -> None:
        # one snapshot for the invoice, item and tax SELECTs
        conn.execute("BEGIN")

    def _insert_items(self, conn: sqlite3.Connection, invoice_id: str, items: Sequence[ValidatedItem]) -> None:
        for position, item in enumerate(items):
            item_id = new_id()
            conn.execute(
                "INSERT INTO items(id, invoice_id, position, name, price, quantity) VALUES(?, ?, ?, ?, ?, ?)",
                (item_id, invoice_id, position, item.name, item.price, item.quantity),
            )
            conn.executemany(
                "INSERT INTO taxes(id, item_id, position, rate, title) VALUES(?, ?, ?, ?, ?)",
                [(new_id(), item_id, idx, tax.rate, tax.title) for idx, tax in enumerate(item.taxes)],
            )

    def _load(self, conn: sqlite3.Connection, invoice_id: str) -> Optional[Invoice]:
        row = conn.execute("SELECT * FROM invoices WHERE id = ?", (invoice_id,)).fetchone()
        if row is None:
            return None
        items = self._items_by_invoice(conn, invoice_id)
        return self._to_invoice(row, items.get(invoice_id, []))

    def _items_by_invoice(self, conn: sqlite3.Connection, invoice_id: Optional[str]) -> Dict[str, List[Item]]:
        if invoice_id is None:
            item_rows = conn.execute("SELECT * FROM items ORDER BY invoice_id, position").fetchall()
            tax_rows = conn.execute("SELECT * FROM taxes ORDER BY item_id, position").fetchall()
        else:
            item_rows = conn.execute(
                "SELECT * FROM items WHERE invoice_id = ? ORDER BY position", (invoice_id,)
            ).fetchall()
            tax_rows = conn.execute(
                "SELECT taxes.* FROM taxes JOIN items ON items.id = taxes.item_id "
                "WHERE items.invoice_id = ? ORDER BY taxes.item_id, taxes.position",
                (invoice_id,),
            ).fetchall()

        taxes: Dict[str, List[Tax]] = defaultdict(list)
        for row in tax_rows:
            taxes[row["item_id"]].append(Tax(id=row["id"], rate=row["rate"], title=row["title"]))

        items: Dict[str, List[Item]] = defaultdict(list)
        for row in item_rows:
            items[row["invoice_id"]].append(
                Item(
                    id=row["id"],
                    name=row["name"],
                    price=row["price"],
                    quantity=row["quantity"],
                    taxes=taxes.get(row["id"], []),
                )
            )
        return items

    @staticmethod
    def _to_invoice(row: sqlite3.Row, items: List[Item]) -> Invoice:
        return Invoice(
            id=row["id"],
            date=datetime.fromisoformat(row["date"]),
            number=row["number"],
            currency=row["currency"],
            items=items,
        )
