"""
Exception handlers: every failure leaves the API as the same JSON error body.

    {"error": true, "status_code": 409, "detail": "Email already registered",
     "error_code": "RESOURCE_ALREADY_EXISTS", "request_id": "...", "timestamp": "..."}
"""

import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.clock import utcnow
from app.core.config import settings
from app.core.exceptions import integrity_error_to_api_error
from app.core.middleware import request_context

logger = logging.getLogger(__name__)


def create_error_response(
    request: Request,
    status_code: int,
    detail: str,
    error_code: Optional[str] = None,
    error_data: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    content = {
        "error": True,
        "status_code": status_code,
        "detail": detail,
        "timestamp": utcnow().isoformat(),
        "request_id": getattr(request.state, "request_id", None),
    }
    if error_code:
        content["error_code"] = error_code
    if error_data:
        content["error_data"] = error_data

    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Typed API errors and plain HTTP errors (unknown routes, wrong methods)."""
    error_code = getattr(exc, "error_code", None) or "HTTP_EXCEPTION"
    error_data = getattr(exc, "error_data", None)

    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{error_code} ({exc.status_code}): {exc.detail}",
        extra={**request_context(request), "error_data": error_data}
    )

    response = create_error_response(request, exc.status_code, exc.detail, error_code, error_data)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters are a 400 like any other validation failure."""
    errors = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning(
        f"Request validation failed on {', '.join(error['field'] for error in errors)}",
        extra=request_context(request)
    )

    return create_error_response(
        request,
        status.HTTP_400_BAD_REQUEST,
        errors[0]["message"] if errors else "Request validation failed",
        "VALIDATION_ERROR",
        {"validation_errors": errors}
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Database errors that escaped a service's own commit handling."""
    if isinstance(exc, IntegrityError):
        return await http_exception_handler(request, integrity_error_to_api_error(exc))

    if isinstance(exc, OperationalError):
        status_code, detail, error_code = (
            status.HTTP_503_SERVICE_UNAVAILABLE, "Database unavailable", "DATABASE_UNAVAILABLE"
        )
    else:
        status_code, detail, error_code = (
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Database error occurred", "DATABASE_ERROR"
        )

    logger.error(f"{error_code}: {exc}", extra=request_context(request))

    error_data = {"exception_type": type(exc).__name__, "original_error": str(exc)} if settings.debug else None
    return create_error_response(request, status_code, detail, error_code, error_data)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__}: {exc}",
        extra={**request_context(request), "traceback": traceback.format_exc()}
    )

    if settings.debug:
        detail = f"Internal server error: {exc}"
        error_data = {"exception_type": type(exc).__name__, "traceback": traceback.format_exc().splitlines()}
    else:
        detail = "An unexpected error occurred. Please try again later."
        error_data = None

    return create_error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, detail, "INTERNAL_SERVER_ERROR", error_data
    )


ERROR_HANDLERS = {
    StarletteHTTPException: http_exception_handler,
    RequestValidationError: validation_exception_handler,
    SQLAlchemyError: sqlalchemy_exception_handler,
    Exception: generic_exception_handler,
}


def register_error_handlers(app):
    for exception_class, handler in ERROR_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
