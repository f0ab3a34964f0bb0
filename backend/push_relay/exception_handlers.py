"""Render relay errors as JSON `{"message": ...}` responses."""
import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import is_production
from .errors import PushRelayError, ValidationError

logger = logging.getLogger(__name__)


async def relay_error_handler(request: Request, exc: PushRelayError) -> JSONResponse:
    """Expected failures keep their own status and message."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors like any other missing field."""
    fields = [".".join(str(part) for part in error.get("loc", ())) for error in exc.errors()]
    logger.info(f"Rejected malformed body on {request.url.path}: {', '.join(fields)}")
    error = ValidationError(f"Invalid request body: {', '.join(fields)}" if fields else None)
    return JSONResponse(status_code=error.status_code, content={"message": error.message})


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything unclassified is an internal fault."""
    logger.exception(f"Unexpected error on {request.method} {request.url.path}")
    message = "Internal server error" if is_production() else (str(exc) or type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": message},
    )
