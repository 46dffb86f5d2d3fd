"""
Utility for standardized error handling across all API endpoints.
This ensures consistent error responses and logging throughout the application.
"""

import traceback
from typing import Any, Callable, Dict, Type

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from filestream.utils.exceptions import (
    BaseAPIException,
    InternalServerException,
    ValidationException,
)
from filestream.utils.logger import get_logger

logger = get_logger(__name__)

# Exception mapping for converting standard exceptions to our custom exceptions
EXCEPTION_MAPPING: Dict[Type[Exception], Callable[[Exception], BaseAPIException]] = {
    ValidationError: lambda e: ValidationException(
        "Invalid upload request",
        details={"errors": [err["msg"] for err in e.errors()]},
    ),
}


def error_body(code: str, message: str, details: Any = None) -> Dict[str, Any]:
    """Build the JSON body shared by every error response"""
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        }
    }


def to_api_exception(exception: Exception, operation: str) -> BaseAPIException:
    """
    Convert any exception raised while serving a request to our hierarchy.

    Args:
        exception: The exception that was raised
        operation: Description of the operation that failed (e.g., "storing chunk")

    Returns:
        A BaseAPIException instance suitable for raising
    """
    if isinstance(exception, BaseAPIException):
        return exception

    for exception_class, factory in EXCEPTION_MAPPING.items():
        if isinstance(exception, exception_class):
            return factory(exception)

    logger.error(f"Error during {operation}: {str(exception)}")
    return InternalServerException(
        message=f"Internal error during {operation}",
        details={"exception_type": exception.__class__.__name__},
    )


async def api_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    """
    Global exception handler for our custom exceptions.

    Usage:
        app.add_exception_handler(BaseAPIException, api_exception_handler)
    """
    if exc.status_code >= 500:
        logger.error(f"API Exception on {request.url.path}: {exc.detail}")
    else:
        logger.warning(f"API Exception on {request.url.path}: {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, exc.details),
        headers=exc.headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors"""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": " -> ".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    logger.warning(f"Validation error: {errors}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body("VALIDATION_ERROR", "Validation error", {"errors": errors}),
    )


async def internal_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for anything that escaped the endpoints"""
    logger.error(f"Stack trace: {traceback.format_exc()}")
    api_exc = to_api_exception(exc, f"{request.method} {request.url.path}")

    return JSONResponse(
        status_code=api_exc.status_code,
        content=error_body(api_exc.code, api_exc.message, api_exc.details),
    )
