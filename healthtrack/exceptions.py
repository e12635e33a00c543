import logging
from enum import Enum
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import settings

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FORMAT = "INVALID_FORMAT"
    INVALID_RANGE = "INVALID_RANGE"
    INVALID_STATUS = "INVALID_STATUS"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    INVALID_PARTICIPANT = "INVALID_PARTICIPANT"
    SCHEDULING_CONFLICT = "SCHEDULING_CONFLICT"
    DUPLICATE = "DUPLICATE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INTERNAL = "INTERNAL"


class DomainError(Exception):
    """Base for every error the application layer reports to callers.

    ``kind`` is the machine-readable reason, ``field`` names the offending
    input where there is one.
    """

    status_code = 500
    default_kind = ErrorKind.INTERNAL

    def __init__(self, message: str, kind: Optional[ErrorKind] = None, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind or self.default_kind
        self.field = field


class ValidationError(DomainError):
    status_code = 400
    default_kind = ErrorKind.VALIDATION_ERROR


class ConflictError(ValidationError):
    status_code = 409
    default_kind = ErrorKind.SCHEDULING_CONFLICT


class NotFoundError(DomainError):
    status_code = 404
    default_kind = ErrorKind.NOT_FOUND


class AuthError(DomainError):
    status_code = 401
    default_kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str, kind: Optional[ErrorKind] = None, field: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message, kind, field)
        if status_code is not None:
            self.status_code = status_code


class ForbiddenError(AuthError):
    status_code = 403
    default_kind = ErrorKind.FORBIDDEN


class InternalError(DomainError):
    status_code = 500
    default_kind = ErrorKind.INTERNAL


def create_error_response(error_message: str, kind: str = ErrorKind.VALIDATION_ERROR.value, field: Optional[str] = None) -> dict:
    """Create a standardized error response"""
    body = {
        "success": False,
        "data": None,
        "error": error_message,
        "kind": kind,
    }
    if field:
        body["field"] = field
    return body


def create_success_response(message: str, data: Optional[dict] = None) -> dict:
    """Create a standardized success response"""
    return {
        "success": True,
        "message": message,
        "data": data,
    }


async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error(f"Internal error on {request.method} {request.url.path}: {exc.message}")
        message = f"Internal server error: {exc.message}" if settings.DEBUG else "Internal server error"
    else:
        message = exc.message
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(message, exc.kind.value, exc.field),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # HTTPBearer reports a missing header as 403 "Not authenticated"
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", ErrorKind.UNAUTHORIZED.value),
        )
    kind = ErrorKind.NOT_FOUND.value if exc.status_code == 404 else ErrorKind.VALIDATION_ERROR.value
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(str(exc.detail), kind),
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    if location:
        message = f"{location}: {message}"
    return JSONResponse(
        status_code=400,
        content=create_error_response(message, ErrorKind.VALIDATION_ERROR.value, location or None),
    )
