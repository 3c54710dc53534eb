"""Domain error taxonomy shared by services and API handlers."""

from typing import Any, Optional, Sequence
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base exception for errors reported to API clients."""

    status_code: int = 500

    def __init__(self, message: str, *, details: Optional[list[dict[str, Any]]] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class RateLimitExceeded(AppError):
    """Raised when a client exhausts its fixed-window request budget."""

    status_code = 429

    def __init__(self, message: str, retry_after: int):
        self.retry_after = retry_after
        super().__init__(message)


class NotFoundOrNotOwned(AppError):
    """Record is missing or belongs to someone else; both look the same."""

    status_code = 404


class UpstreamFailure(AppError):
    """Backing store failure; the message is safe to show to clients."""

    status_code = 500


class ConfigurationMissing(AppError):
    """A required setting (e.g. the review redirect URL) is not configured."""

    status_code = 409


def _envelope(
    status_code: int,
    error: str,
    details: Optional[list[dict[str, Any]]] = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "error": error}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def validation_details(errors: Sequence[dict[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic errors into ``{field, message}`` pairs."""
    details = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc) or "body", "message": error.get("msg", "Invalid value")})
    return details


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    """Convert domain errors to the JSON error envelope"""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} at {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{type(exc).__name__} at {request.url.path}: {exc.message}")
    headers = None
    if isinstance(exc, RateLimitExceeded):
        headers = {"Retry-After": str(exc.retry_after)}
    return _envelope(exc.status_code, exc.message, exc.details, headers)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _envelope(
        exc.status_code,
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request validation failures are reported as 400 with per-field details"""
    details = validation_details(exc.errors())
    logger.info(f"Invalid input at {request.url.path}: {details}")
    return _envelope(status.HTTP_400_BAD_REQUEST, "Invalid input data", details)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error at {request.url.path}")
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def register_exception_handlers(app) -> None:
    """Register all exception handlers with the FastAPI app"""
    app.add_exception_handler(AppError, handle_app_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
