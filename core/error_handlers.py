"""Map scanner exceptions raised in routes and dependencies to HTTP responses."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from core.exceptions import (
    ConfigurationError,
    CreditScannerError,
    CSVImportError,
    DiscogsAPIError,
    ServiceInitializationError,
    SyncInProgressError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[CreditScannerError], int] = {
    ConfigurationError: status.HTTP_400_BAD_REQUEST,
    CSVImportError: status.HTTP_400_BAD_REQUEST,
    SyncInProgressError: status.HTTP_409_CONFLICT,
    DiscogsAPIError: status.HTTP_502_BAD_GATEWAY,
    ServiceInitializationError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: CreditScannerError) -> int:
    """HTTP status for an exception, walking its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def register_exception_handlers(app: FastAPI) -> None:
    """Register the handler for every :class:`CreditScannerError`.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(CreditScannerError)
    async def credit_scanner_exception_handler(
        request: Request, exc: CreditScannerError
    ) -> JSONResponse:
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error(f"{type(exc).__name__} at {request.url.path}: {exc.message}")
        else:
            logger.warning(f"{type(exc).__name__} at {request.url.path}: {exc.message}")
        content: dict = {"detail": exc.message}
        if exc.details:
            content["details"] = exc.details
        return JSONResponse(status_code=status_code, content=content)
