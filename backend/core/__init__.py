"""
Shared plumbing for the filing backend: fault types, logging and rate limits.

Configuration and fixed vocabularies live in ``core.config`` and
``core.constants`` and are imported from there directly.
"""

from .errors import (
    ErrorCode,
    FilingError,
    ValidationError,
    NotFoundError,
    SessionNotFoundError,
    ApplicationNotFoundError,
    InvariantViolation,
    CollaboratorError,
    StoreError,
    BlobStoreError,
    RenderError,
    LLMError,
    handle_exception,
    raise_validation_error,
)
from .logging import get_logger, log_audit, log_error, log_timing, log_warning, setup_logging
from .rate_limit import RateLimits, limiter

__all__ = [
    "ErrorCode",
    "FilingError",
    "ValidationError",
    "NotFoundError",
    "SessionNotFoundError",
    "ApplicationNotFoundError",
    "InvariantViolation",
    "CollaboratorError",
    "StoreError",
    "BlobStoreError",
    "RenderError",
    "LLMError",
    "handle_exception",
    "raise_validation_error",
    "setup_logging",
    "get_logger",
    "log_timing",
    "log_error",
    "log_warning",
    "log_audit",
    "limiter",
    "RateLimits",
]
