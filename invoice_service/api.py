"""FastAPI application exposing invoice CRUD endpoints."""
from __future__ import annotations

from functools import lru_cache
from typing import Any, List, Optional

from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .errors import NotFound, PersistenceError, ValidationError
from .schemas import DeleteResponse, ErrorResponse, Invoice, InvoiceView, ValidateResponse
from .service import InvoiceService
from .storage import SQLiteInvoiceStore
from .totals import invoice_totals
from .validator import InvoiceValidator

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@lru_cache
def get_service() -> InvoiceService:
    settings = get_settings()
    return InvoiceService(SQLiteInvoiceStore(settings.db_path, timeout=settings.db_timeout))


def _error(status_code: int, error: Any, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def on_validation_error(request: Request, exc: ValidationError):
        return _error(400, exc.errors)

    @app.exception_handler(RequestValidationError)
    async def on_malformed_body(request: Request, exc: RequestValidationError):
        # body is not JSON at all, or missing
        errors = [
            {"path": [part for part in err.get("loc", ()) if part != "body"], "message": err.get("msg", "Invalid body")}
            for err in exc.errors()
        ]
        return _error(400, errors)

    @app.exception_handler(NotFound)
    async def on_not_found(request: Request, exc: NotFound):
        return _error(404, "Invoice not found")

    @app.exception_handler(PersistenceError)
    async def on_persistence_error(request: Request, exc: PersistenceError):
        return _error(500, "An unexpected error occurred", details=str(exc))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Invoice Service", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/invoices", response_model=Invoice, responses=ERROR_RESPONSES)
    def create_invoice(payload: Any = Body(...), service: InvoiceService = Depends(get_service)):
        return service.create(payload)

    @app.post("/invoices/validate", response_model=ValidateResponse, responses=ERROR_RESPONSES)
    def validate_invoice(payload: Any = Body(...)):
        """Dry run: validate and total a submission without storing it."""
        validated = InvoiceValidator().validate(payload)
        return ValidateResponse(invoice=validated, totals=invoice_totals(validated).rounded())

    @app.get("/invoices", response_model=List[Invoice], responses=ERROR_RESPONSES)
    def list_invoices(service: InvoiceService = Depends(get_service)):
        return service.list()

    @app.get("/invoices/{invoice_id}", response_model=Invoice, responses=ERROR_RESPONSES)
    def get_invoice(invoice_id: str, service: InvoiceService = Depends(get_service)):
        return service.get(invoice_id)

    @app.get("/invoices/{invoice_id}/view", response_model=InvoiceView, responses=ERROR_RESPONSES)
    def view_invoice(invoice_id: str, service: InvoiceService = Depends(get_service)):
        return service.view(invoice_id)

    @app.put("/invoices/{invoice_id}", response_model=Invoice, responses=ERROR_RESPONSES)
    def update_invoice(invoice_id: str, payload: Any = Body(...), service: InvoiceService = Depends(get_service)):
        return service.update(invoice_id, payload)

    @app.delete("/invoices/{invoice_id}", response_model=DeleteResponse, responses=ERROR_RESPONSES)
    def delete_invoice(invoice_id: str, service: InvoiceService = Depends(get_service)):
        service.delete(invoice_id)
        return DeleteResponse()

    return app


app = create_app()
