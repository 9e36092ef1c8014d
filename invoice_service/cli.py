"""Command-line entrypoints for managing and printing invoices."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich import print
from rich.console import Console
from rich.table import Table

from .config import configure_logging, get_settings
from .errors import InvoiceServiceError, NotFound, ValidationError
from .schemas import FieldError, Invoice
from .service import InvoiceService
from .storage import SQLiteInvoiceStore
from .totals import invoice_totals
from .utils import format_money
from .validator import InvoiceValidator

app = typer.Typer(add_completion=False, help="Invoice service CLI")
console = Console()

DbOption = typer.Option(None, "--db", help="SQLite database path (defaults to INVOICE_DB_PATH)")


def _service(db: Optional[Path]) -> InvoiceService:
    settings = get_settings()
    return InvoiceService(SQLiteInvoiceStore(db or settings.db_path, timeout=settings.db_timeout))


def _load_submission(json_path: Path) -> Any:
    try:
        return json.loads(json_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        print(f"[red]Invalid JSON in {json_path}:[/red] {exc}")
        raise typer.Exit(code=2)


def _print_errors(errors: list[FieldError]) -> None:
    print(f"[red]Invalid invoice:[/red] {len(errors)} error(s)")
    for err in errors:
        print(f"- {err.key or '<root>'}: {err.message}")


def _print_invoice(invoice: Invoice) -> None:
    """Printable view: header, one row per item, then subtotal/tax/total."""
    totals = invoice_totals(invoice)
    console.print(f"[bold]Invoice #{invoice.number}[/bold]")
    console.print(f"Date: {invoice.date.date().isoformat()}    Currency: {invoice.currency}")
    console.print(f"[dim]id {invoice.id}[/dim]")

    table = Table(show_lines=False)
    table.add_column("Item Name")
    table.add_column("Price", justify="right")
    table.add_column("Quantity", justify="right")
    table.add_column("Taxes")
    table.add_column("Total", justify="right")
    for item, figures in zip(invoice.items, totals.items):
        taxes = ", ".join(f"{tax.title} ({tax.rate:g}%)" for tax in item.taxes) or "-"
        table.add_row(item.name, format_money(item.price), str(item.quantity), taxes, format_money(figures.grand_total))
    console.print(table)

    console.print(f"Subtotal: {format_money(totals.subtotal)}")
    console.print(f"Taxes: {format_money(totals.tax_total)}")
    console.print(f"[bold]Total: {format_money(totals.grand_total)} {invoice.currency}[/bold]")


def _run(action):
    try:
        return action()
    except ValidationError as exc:
        _print_errors(exc.errors)
        raise typer.Exit(code=1)
    except NotFound as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    except InvoiceServiceError as exc:
        print(f"[red]An unexpected error occurred:[/red] {exc}")
        raise typer.Exit(code=2)


@app.callback()
def main_callback(log_level: Optional[str] = typer.Option(None, help="Logging level (defaults to INVOICE_LOG_LEVEL)")) -> None:
    configure_logging(log_level or get_settings().log_level)


@app.command()
def create(input: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON file with the invoice"), db: Optional[Path] = DbOption) -> None:
    """Create an invoice from a JSON submission."""
    submission = _load_submission(input)
    invoice = _run(lambda: _service(db).create(submission))
    print(f"Created invoice {invoice.id}")
    _print_invoice(invoice)


@app.command()
def update(invoice_id: str, input: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON file with the replacement invoice"), db: Optional[Path] = DbOption) -> None:
    """Replace an invoice and all of its items."""
    submission = _load_submission(input)
    invoice = _run(lambda: _service(db).update(invoice_id, submission))
    print(f"Updated invoice {invoice.id}")
    _print_invoice(invoice)


@app.command("list")
def list_invoices(db: Optional[Path] = DbOption) -> None:
    """List stored invoices with their totals."""
    invoices = _run(lambda: _service(db).list())
    if not invoices:
        print("No invoices found.")
        return
    table = Table()
    table.add_column("Id")
    table.add_column("Number")
    table.add_column("Date")
    table.add_column("Items", justify="right")
    table.add_column("Total", justify="right")
    for invoice in invoices:
        total = invoice_totals(invoice).grand_total
        table.add_row(
            invoice.id,
            invoice.number,
            invoice.date.date().isoformat(),
            str(len(invoice.items)),
            f"{format_money(total)} {invoice.currency}",
        )
    console.print(table)


@app.command()
def show(invoice_id: str, db: Optional[Path] = DbOption) -> None:
    """Print one invoice with computed totals."""
    invoice = _run(lambda: _service(db).get(invoice_id))
    _print_invoice(invoice)


@app.command()
def delete(invoice_id: str, db: Optional[Path] = DbOption) -> None:
    """Delete an invoice together with its items and taxes."""
    _run(lambda: _service(db).delete(invoice_id))
    print("Invoice deleted successfully")


@app.command()
def validate(input: Path = typer.Option(..., exists=True, dir_okay=False, help="JSON file with the invoice")) -> None:
    """Check a submission without storing it."""
    submission = _load_submission(input)
    validated = _run(lambda: InvoiceValidator().validate(submission))
    totals = invoice_totals(validated).rounded()
    print(f"[green]Valid:[/green] {validated.number} with {len(validated.items)} item(s)")
    print(f"Subtotal {totals.subtotal}  Taxes {totals.tax_total}  Total {totals.grand_total} {validated.currency}")


@app.command()
def serve(host: Optional[str] = typer.Option(None, help="Bind address"), port: Optional[int] = typer.Option(None, help="Port")) -> None:
    """Run the HTTP API."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("invoice_service.api:app", host=host or settings.api_host, port=port or settings.api_port)


def main():
    app()


if __name__ == "__main__":
    main()
