import logging
from typing import List, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .core.config import settings

logger = logging.getLogger(__name__)


class FlodiaryError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    public_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.public_message
        super().__init__(self.message)


class ValidationFailed(FlodiaryError):
    status_code = 400
    public_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None,
                 messages: Optional[List[str]] = None):
        super().__init__(message)
        self.field = field
        self.messages = messages or [self.message]


class Conflict(FlodiaryError):
    status_code = 409
    public_message = "Resource already exists"

    def __init__(self, field: str, message: Optional[str] = None):
        super().__init__(message or f"{field} already exists")
        self.field = field


class UniqueConstraintViolation(Conflict):
    """Raised by the repository when a save collides with another user's record."""


class NotFound(FlodiaryError):
    status_code = 404
    public_message = "Not found"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")
        self.resource = resource


class Unauthorized(FlodiaryError):
    status_code = 401
    public_message = "Invalid credentials"


class Forbidden(FlodiaryError):
    status_code = 403
    public_message = "Authentication failed"

    def __init__(self, reason: str):
        # reason is for logs only, the outward message stays generic
        super().__init__(self.public_message)
        self.reason = reason


class InternalFailure(FlodiaryError):
    status_code = 500


def validation_failed_from(exc: ValidationError) -> ValidationFailed:
    """Convert a pydantic ValidationError into the domain taxonomy."""
    errors = exc.errors()
    messages = []
    for err in errors:
        loc = ".".join(str(part) for part in err.get("loc", ()))
        messages.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    field = ".".join(str(part) for part in errors[0].get("loc", ())) if errors else None
    return ValidationFailed(messages[0] if messages else None, field=field, messages=messages)


def create_error_response(error_message: str, status_code: int = 400, details: Optional[list] = None) -> dict:
    """Create a standardized error response"""
    body = {
        "success": False,
        "data": None,
        "error": error_message
    }
    if details:
        body["details"] = details
    return body


def create_success_response(data) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "data": data,
        "error": None
    }


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", 401)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )


async def flodiary_exception_handler(request: Request, exc: FlodiaryError) -> JSONResponse:
    if isinstance(exc, Forbidden):
        logger.warning(f"Forbidden on {request.url.path}: {exc.reason}")
    elif isinstance(exc, InternalFailure):
        logger.error(f"Internal failure on {request.url.path}: {exc.message}", exc_info=exc)
        message = exc.message if settings.DEBUG else InternalFailure.public_message
        return JSONResponse(status_code=exc.status_code, content=create_error_response(message, exc.status_code))

    details = exc.messages if isinstance(exc, ValidationFailed) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.message, exc.status_code, details)
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        details.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return JSONResponse(
        status_code=400,
        content=create_error_response("Validation failed", 400, details)
    )
