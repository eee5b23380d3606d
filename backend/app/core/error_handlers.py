"""Global exception handlers for FastAPI.

Catches all unhandled exceptions and returns structured error responses.
Internal details (stack traces, DB errors) are suppressed in production.
"""

import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.core.exceptions import AppError, StoreUnavailable

logger = logging.getLogger(__name__)

# Request sections FastAPI prefixes onto validation error locations
_LOCATION_PREFIXES = {"body", "query", "path", "header"}


def _error_response(
    status_code: int,
    code: str,
    message: str,
    errors: list | None = None,
    field: str | None = None,
    extra: dict | None = None,
) -> JSONResponse:
    body: dict = {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "statusCode": status_code,
        },
    }
    if errors:
        body["error"]["errors"] = errors
    if field:
        body["error"]["field"] = field
    if extra:
        body["error"].update(extra)
    return JSONResponse(status_code=status_code, content=body)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle errors raised by the query engine and services."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return _error_response(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        errors=exc.errors,
        field=exc.field,
        extra=exc.extra(),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle FastAPI/Starlette HTTPException."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    response = _error_response(
        status_code=exc.status_code,
        code=f"HTTP_{exc.status_code}",
        message=detail,
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic / request validation errors."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", [])]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        errors.append({
            "field": ".".join(loc),
            "message": err.get("msg", "Invalid value"),
        })
    return _error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        code="VALIDATION_ERROR",
        message="Validation failed",
        errors=errors,
    )


async def integrity_error_handler(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    """Constraint violations that slipped past service-level checks."""
    logger.warning(
        "Integrity error on %s %s: %s", request.method, request.url.path, exc.orig
    )
    message = "The change conflicts with an existing record or a missing reference."
    if settings.DEBUG:
        message = f"Integrity error: {exc.orig}"
    return _error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        code="DUPLICATE_KEY",
        message=message,
    )


async def sqlalchemy_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle SQLAlchemy errors without leaking internal details."""
    logger.error(
        "Database error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return await app_error_handler(request, StoreUnavailable())
    message = "A database error occurred. Please try again later."
    if settings.DEBUG:
        message = f"Database error: {exc}"
    return _error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="DATABASE_ERROR",
        message=message,
    )


async def store_unavailable_handler(request: Request, exc: Exception) -> JSONResponse:
    """Connection-level failures: the store could not be reached at all."""
    logger.error(
        "Database unavailable on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=True,
    )
    return await app_error_handler(request, StoreUnavailable())


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Catch-all for unhandled exceptions. Logs full traceback."""
    logger.error(
        "Unhandled exception on %s %s:\n%s",
        request.method,
        request.url.path,
        traceback.format_exc(),
    )
    message = "An unexpected error occurred. Please try again later."
    if settings.DEBUG:
        message = f"Internal error: {exc}"
    return _error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code="INTERNAL_ERROR",
        message=message,
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register all global exception handlers on the FastAPI app."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(OperationalError, store_unavailable_handler)
    app.add_exception_handler(ConnectionError, store_unavailable_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
