"""
Fault types for the filing backend.

Routine outcomes (an incomplete step, a failed requirement check, an invalid
field value) are returned as data by the session core and never raised.
The classes here are for faults: unknown ids, malformed input at the API
edge, broken session contracts and collaborator outages. Each carries an
ErrorCode and the HTTP status it maps to.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    # 400
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"

    # 404
    NOT_FOUND = "NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    APPLICATION_NOT_FOUND = "APPLICATION_NOT_FOUND"

    # 409
    CONFLICT = "CONFLICT"

    # 429
    RATE_LIMITED = "RATE_LIMITED"

    # 500
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVARIANT_VIOLATION = "INVARIANT_VIOLATION"

    # 503, one per collaborator
    STORE_ERROR = "STORE_ERROR"
    BLOB_STORE_ERROR = "BLOB_STORE_ERROR"
    RENDER_ERROR = "RENDER_ERROR"
    LLM_ERROR = "LLM_ERROR"


class FilingError(Exception):
    """
    Base class. Subclasses set ``default_code``, ``default_status`` and
    ``default_message``; any of them can be overridden per instance.
    """

    default_code = ErrorCode.INTERNAL_ERROR
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[ErrorCode] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.status_code = status_code or self.default_status
        self.details = dict(details or {})
        super().__init__(self.message)

    def body(self) -> Dict[str, Any]:
        return {"code": self.code.value, "message": self.message, **self.details}

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.body())


class ValidationError(FilingError):
    default_code = ErrorCode.VALIDATION_ERROR
    default_status = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class NotFoundError(FilingError):
    default_code = ErrorCode.NOT_FOUND
    default_status = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class SessionNotFoundError(NotFoundError):
    default_code = ErrorCode.SESSION_NOT_FOUND

    def __init__(self, session_id: str):
        super().__init__(f"Filing session not found: {session_id}", details={"session_id": session_id})


class ApplicationNotFoundError(NotFoundError):
    default_code = ErrorCode.APPLICATION_NOT_FOUND

    def __init__(self, application_id: str):
        super().__init__(
            f"Application not found: {application_id}", details={"application_id": application_id}
        )


class InvariantViolation(FilingError):
    """
    A caller broke a session contract, e.g. a dependent claim pointing at a
    claim that does not exist. Raised only in strict mode.
    """

    default_code = ErrorCode.INVARIANT_VIOLATION
    default_message = "Session invariant violated"


class CollaboratorError(FilingError):
    """An external collaborator (store, blob store, renderer, LLM) failed."""

    default_status = status.HTTP_503_SERVICE_UNAVAILABLE


class StoreError(CollaboratorError):
    default_code = ErrorCode.STORE_ERROR
    default_message = "Application store request failed"


class BlobStoreError(CollaboratorError):
    default_code = ErrorCode.BLOB_STORE_ERROR
    default_message = "Blob upload failed"


class RenderError(CollaboratorError):
    default_code = ErrorCode.RENDER_ERROR
    default_message = "Document rendering failed"


class LLMError(CollaboratorError):
    default_code = ErrorCode.LLM_ERROR
    default_message = "Suggestion request failed"


def handle_exception(exc: Exception, default_message: str = "An unexpected error occurred") -> HTTPException:
    """
    Map any exception to an HTTPException.

    FilingErrors keep their status and body, HTTPExceptions pass through,
    anything else becomes a 500 whose detail never includes the original text.
    """
    if isinstance(exc, FilingError):
        return exc.to_http_exception()
    if isinstance(exc, HTTPException):
        return exc

    logger.error(f"Unexpected error: {type(exc).__name__}: {exc}", exc_info=exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"code": ErrorCode.INTERNAL_ERROR.value, "message": default_message},
    )


def raise_validation_error(field: str, message: str, value: Optional[Any] = None) -> None:
    """Raise ValidationError(INVALID_INPUT) naming the field; the echoed value is cut to 100 chars."""
    details = {"field": field}
    if value is not None:
        details["value"] = str(value)[:100]
    raise ValidationError(f"Invalid {field}: {message}", code=ErrorCode.INVALID_INPUT, details=details)


async def filing_error_handler(request: Request, exc: FilingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code.value} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.body()})
