"""
Error types and exception handlers for the TranscodeFlow API
"""
import traceback
from typing import Optional

from fastapi import Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

logger = structlog.get_logger()


class TranscodeFlowError(Exception):
    """Base exception for TranscodeFlow errors."""

    def __init__(self, message: str, code: str = "TRANSCODEFLOW_ERROR", status_code: int = 500):
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)


class JobDecodeError(TranscodeFlowError):
    """Submitted body is not a decodable job."""

    def __init__(self, message: str = "Invalid job format"):
        super().__init__(message, "JOB_DECODE_ERROR", 400)


class MissingFieldError(TranscodeFlowError):
    """A required job field is empty."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Missing required job field: {field}", "MISSING_FIELD", 400)


class SerializationError(TranscodeFlowError):
    """A job or result could not be serialized."""

    def __init__(self, message: str):
        super().__init__(message, "SERIALIZATION_ERROR", 500)


class BrokerError(TranscodeFlowError):
    """Broker (Redis) operation failed."""

    def __init__(self, message: str, queue: Optional[str] = None):
        self.queue = queue
        super().__init__(message, "BROKER_ERROR", 500)


async def transcodeflow_exception_handler(request: Request, exc: TranscodeFlowError):
    """Render TranscodeFlow errors as plain-text reasons."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Request failed",
        error_code=exc.code,
        error_message=exc.message,
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
    )
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Plain-text variant of the default HTTP exception handler."""
    logger.warning(
        "HTTP error",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method,
    )
    return PlainTextResponse(
        str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(
        "Unhandled exception",
        exc_type=type(exc).__name__,
        exc_message=str(exc),
        traceback=traceback.format_exc(),
        path=request.url.path,
        method=request.method,
    )
    return PlainTextResponse("Server error", status_code=500)
