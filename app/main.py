import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api import health, invoice_groups, invoices, quotes
from app.core.config import get_settings
from app.core.errors import DuplicateNumber, NotFound, TransportFailure, ValidationFailed
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationFailed)
    async def _validation_failed(request: Request, exc: ValidationFailed) -> JSONResponse:
        return JSONResponse(status_code=400, content={"success": False, "errors": exc.errors})

    @app.exception_handler(NotFound)
    async def _not_found(request: Request, exc: NotFound) -> JSONResponse:
        return JSONResponse(status_code=404, content={"success": False, "detail": str(exc)})

    @app.exception_handler(TransportFailure)
    async def _transport_failure(request: Request, exc: TransportFailure) -> JSONResponse:
        return JSONResponse(status_code=502, content={"success": False, "errors": {"mail": [str(exc)]}})

    @app.exception_handler(DuplicateNumber)
    async def _duplicate_number(request: Request, exc: DuplicateNumber) -> JSONResponse:
        logger.error("Numbering clash: %s", exc)
        return JSONResponse(status_code=409, content={"success": False, "detail": str(exc)})


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    app = FastAPI(title="Quote Desk", version="0.1.0")

    # Routers
    app.include_router(health.router, tags=["health"])
    app.include_router(quotes.router, prefix="/quotes", tags=["quotes"])
    app.include_router(invoice_groups.router, prefix="/invoice-groups", tags=["invoice-groups"])
    app.include_router(invoices.router, prefix="/invoices", tags=["invoices"])

    register_error_handlers(app)
    return app


app = create_app()
