"""Domain exceptions and the handlers that render them with request_id."""

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.bulkops.core.logging import get_logger

logger = get_logger(__name__)


class BulkOperationsError(Exception):
    """Base class for errors surfaced by the bulk operations service."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BulkOperationsError):
    """Bulk operation or downstream entity does not exist."""

    status_code = 404


class BadRequestError(BulkOperationsError):
    """Requested step is not applicable to the operation's status."""

    status_code = 400


class IllegalOperationStateError(BulkOperationsError):
    """Operation cannot be started, cancelled or moved from its current status."""

    status_code = 400


class ServerError(BulkOperationsError):
    """Unrecoverable failure inside a stage, such as an unreadable file."""

    status_code = 500


class BulkOperationError(BulkOperationsError):
    """Failure talking to the data export job (upload retries exhausted, job failed)."""

    status_code = 500


class ConverterError(BulkOperationsError):
    """A single field could not be converted to or from its CSV form."""

    status_code = 422

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class OptimisticLockingError(BulkOperationsError):
    """The record was changed by someone else between fetch and update."""

    status_code = 409

    def __init__(
        self,
        csv_error_message: str,
        ui_error_message: str | None = None,
        link_to_failed_entity: str | None = None,
    ):
        super().__init__(csv_error_message)
        self.csv_error_message = csv_error_message
        self.ui_error_message = ui_error_message or csv_error_message
        self.link_to_failed_entity = link_to_failed_entity


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(BulkOperationsError)
    async def bulk_operations_exception_handler(
        request: Request, exc: BulkOperationsError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "Bulk operation request failed",
                error=exc.message,
                error_type=type(exc).__name__,
                path=request.url.path,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.message,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
