"""Exception handlers rendering every API error as ``{"error": message}``."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from portal.core.errors import DownstreamServiceError, classify_error
from portal.core.store import DatabaseError


logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def format_validation_error(exc: RequestValidationError) -> str:
    """First validation problem as a short readable sentence."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
    if location and first.get("type") in ("missing", "string_too_short", "string_too_long", "enum", "literal_error"):
        return f"{'.'.join(location)}: {message}"
    return message


async def _http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = format_validation_error(exc)
    logger.info("request_validation_failed", extra={"path": request.url.path, "error": message})
    return error_response(status.HTTP_400_BAD_REQUEST, message)


async def _downstream_exception_handler(request: Request, exc: DownstreamServiceError) -> JSONResponse:
    logger.error("downstream_service_failed", extra={"path": request.url.path, "service": exc.service, "error": str(exc)})
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))


async def _database_exception_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    classified = classify_error(exc)
    logger.error(
        "database_error",
        extra={"path": request.url.path, "error": str(exc), "error_category": classified.category.value},
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, classified.message)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DownstreamServiceError, _downstream_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DatabaseError, _database_exception_handler)  # type: ignore[arg-type]
