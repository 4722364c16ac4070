"""
Exception handlers that turn domain errors into HTTP responses.

Every error body has the same shape:
    {"detail": "...", "code": "...", "errors": {field: message}}
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.config.logging import rest_api_logger as logger
from rest_api.services.domain.errors import (
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    OrderDomainError,
    ValidationError,
)


DOMAIN_STATUS_CODES: dict[type[OrderDomainError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    InsufficientStockError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidStateError: status.HTTP_409_CONFLICT,
}


def status_code_for(exc: OrderDomainError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in DOMAIN_STATUS_CODES:
            return DOMAIN_STATUS_CODES[error_type]
    return status.HTTP_400_BAD_REQUEST


def _field_name(loc: tuple) -> str:
    """("body", "items", 0, "quantity") -> "items[0].quantity"."""
    parts = list(loc)
    if parts and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    name = ""
    for part in parts:
        if isinstance(part, int):
            name += f"[{part}]"
        else:
            name += f".{part}" if name else str(part)
    return name or "body"


async def domain_error_handler(request: Request, exc: OrderDomainError) -> JSONResponse:
    status_code = status_code_for(exc)
    errors = getattr(exc, "errors", {})
    if isinstance(exc, InsufficientStockError):
        errors = {"product_id": exc.product_id}

    logger.warning(
        "Order request rejected",
        method=request.method,
        path=request.url.path,
        status_code=status_code,
        code=exc.code,
        detail=exc.detail,
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.detail, "code": exc.code, "errors": errors},
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, str] = {}
    for error in exc.errors():
        errors.setdefault(_field_name(tuple(error.get("loc", ()))), error.get("msg", "invalid value"))

    logger.warning(
        "Request validation failed",
        method=request.method,
        path=request.url.path,
        fields=list(errors),
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request", "code": ValidationError.code, "errors": errors},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error",
        method=request.method,
        path=request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the domain, validation and catch-all handlers on the app."""
    app.add_exception_handler(OrderDomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
