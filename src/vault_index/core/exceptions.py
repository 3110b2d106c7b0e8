"""Error taxonomy and the FastAPI handlers that render it."""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from vault_index.core.logging import get_logger

logger = get_logger(__name__)


class AppException(Exception):
    """Error carrying the HTTP status it maps to."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """A document or resource does not exist."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class ValidationException(AppException):
    """Input was well-formed JSON but not acceptable."""

    def __init__(self, message: str = "Validation error"):
        super().__init__(message, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


class ParseError(ValidationException):
    """Raised when an external payload does not match its expected schema."""

    def __init__(self, message: str = "Malformed payload"):
        super().__init__(message)


class EmbeddingServiceError(AppException):
    """The embedding service was unreachable, timed out, or answered with garbage."""

    def __init__(self, message: str = "Embedding service error"):
        super().__init__(message, status_code=status.HTTP_502_BAD_GATEWAY)


class StorageError(AppException):
    """A read or write against the vector store failed."""

    def __init__(self, message: str = "Vector store error"):
        super().__init__(message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


class DimensionMismatchWarning(UserWarning):
    """A stored vector's length differs from the query vector; the entry was skipped."""


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render an ``AppException`` as ``{"detail", "type"}`` with its own status code."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "type": type(exc).__name__},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning("HTTP %s on %s: %s", exc.status_code, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log the traceback, hide the details from the client."""
    logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )
