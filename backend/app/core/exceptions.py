"""
Global exception handlers for FastAPI application.
"""

from typing import Dict, Type

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError

from app.utils.exceptions import (
    ZanaiException,
    TemplateImportError,
    FlowDataSchemaError,
    WorkflowNotFoundError,
)
from app.utils.formatters import format_error_response


# Anything not listed (collaborator failures included) is a 500
EXCEPTION_STATUS_CODES: Dict[Type[ZanaiException], int] = {
    WorkflowNotFoundError: status.HTTP_404_NOT_FOUND,
    TemplateImportError: status.HTTP_400_BAD_REQUEST,
    FlowDataSchemaError: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def status_code_for(exc: ZanaiException) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in EXCEPTION_STATUS_CODES:
            return EXCEPTION_STATUS_CODES[exc_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def zanai_exception_handler(request: Request, exc: ZanaiException) -> JSONResponse:
    """Map domain exceptions to their HTTP status and error body."""
    status_code = status_code_for(exc)

    if status_code >= 500:
        # Upstream bodies and transport errors stay in the log only
        logger.opt(exception=exc).error(
            f"{request.method} {request.url.path} failed: {exc.message} (detail: {exc.detail})"
        )
        content = format_error_response(exc, status_code, include_detail=False)
    else:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.message}")
        content = format_error_response(exc, status_code)

    return JSONResponse(status_code=status_code, content=content)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Flatten pydantic errors into ``{field, message, type}`` entries."""
    errors = [
        {
            "field": ".".join(str(loc) for loc in error.get("loc", [])),
            "message": error.get("msg"),
            "type": error.get("type"),
        }
        for error in exc.errors()
    ]
    logger.warning(f"Validation error on {request.url.path}: {errors}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "ValidationError",
            "detail": "Request validation failed",
            "status_code": status.HTTP_422_UNPROCESSABLE_ENTITY,
            "errors": errors,
        },
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if isinstance(exc, SQLAlchemyTimeoutError):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "error": "ServiceUnavailable",
                "detail": "Database connection pool exhausted, retry shortly",
                "status_code": status.HTTP_503_SERVICE_UNAVAILABLE,
            },
            headers={"Retry-After": "3"},
        )

    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": exc.__class__.__name__,
            "detail": str(exc),
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
        },
    )
