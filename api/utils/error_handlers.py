"""
Exception Handlers and Result Mapping

Every error leaving the API uses the ErrorResponse body. Pipeline failures
keep their error_code and get an HTTP status derived from it; framework
errors (unknown routes, bad request bodies, crashes) are wrapped the same way.
"""

import logging
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models.errors import ErrorResponse, ValidationErrorItem, ValidationErrorResponse
from src.email_processing.results import OperationResult

logger = logging.getLogger(__name__)

STATUS_BY_ERROR_CODE = {
    "EMAIL_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "UNAUTHORIZED": status.HTTP_403_FORBIDDEN,
    "CLASSIFICATION_UNRECOGNIZED": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "CAPABILITY_UNAVAILABLE": status.HTTP_502_BAD_GATEWAY,
    "CAPABILITY_TIMEOUT": status.HTTP_504_GATEWAY_TIMEOUT,
    "SOURCE_UNAVAILABLE": status.HTTP_502_BAD_GATEWAY,
    "SOURCE_TIMEOUT": status.HTTP_504_GATEWAY_TIMEOUT,
}


def status_for_error_code(error_code: str) -> int:
    return STATUS_BY_ERROR_CODE.get(error_code, status.HTTP_500_INTERNAL_SERVER_ERROR)


def error_json(status_code: int, error: ErrorResponse) -> JSONResponse:
    # mode="json" renders datetimes as ISO strings
    return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))


def result_response(result: OperationResult) -> JSONResponse:
    """
    Convert a pipeline result into an HTTP response.

    Successful results are returned as-is with 200; failures use the
    ErrorResponse shape with a status derived from the error code.
    """
    if result.success:
        return JSONResponse(status_code=status.HTTP_200_OK, content=result.model_dump(mode="json"))

    return error_json(
        status_for_error_code(result.error.error_code),
        ErrorResponse(
            message=result.error.message,
            error_code=result.error.error_code,
            timestamp=result.timestamp
        )
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Register the framework-level exception handlers on the application."""
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
    logger.info("Exception handlers registered")


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    log_request_error(request, exc, exc.status_code)
    return error_json(
        exc.status_code,
        ErrorResponse(message=str(exc.detail), error_code=f"HTTP_{exc.status_code}")
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report each invalid field of a rejected request body or query."""
    log_request_error(request, exc, status.HTTP_422_UNPROCESSABLE_ENTITY)

    items: List[ValidationErrorItem] = [
        ValidationErrorItem(
            loc=[str(part) for part in error["loc"]],
            msg=error["msg"],
            type=error["type"]
        )
        for error in exc.errors()
    ]
    return error_json(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ValidationErrorResponse(
            message="Request validation error",
            error_code="VALIDATION_ERROR",
            validation_errors=items
        )
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Last-resort handler for anything the pipeline did not turn into a result.

    The response never carries the exception text; it is only logged.
    """
    log_request_error(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return error_json(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(
            message="An unexpected error occurred",
            error_code="INTERNAL_ERROR",
            details={"type": exc.__class__.__name__}
        )
    )


def log_request_error(request: Request, exc: Exception, status_code: int) -> None:
    """Log a failed request; server errors are logged with their traceback."""
    context: Dict[str, Any] = {
        "status_code": status_code,
        "error_type": exc.__class__.__name__,
        "client_host": request.client.host if request.client else "unknown"
    }
    message = f"{request.method} {request.url.path} failed: {exc} {context}"

    if status_code >= 500:
        logger.error(message, exc_info=exc)
    else:
        logger.warning(message)
