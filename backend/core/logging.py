"""
Logging setup for the filing backend.

Records from every backend module (``filing.*``, ``services.*``, ``api.*``)
go through one stdout handler on the root logger: JSON lines when LOG_JSON
is on, plain text otherwise. Session lifecycle changes and saved-application
writes are also emitted on the ``ip-filing.audit`` logger.
"""

import logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from .config import LOG_JSON, LOG_LEVEL

SERVICE_NAME = "ip-filing"

TEXT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# LogRecord attributes that must not be overwritten through ``extra``
_RESERVED = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

events = logging.getLogger(f"{SERVICE_NAME}.events")
audit = logging.getLogger(f"{SERVICE_NAME}.audit")


class FilingJsonFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["service"] = SERVICE_NAME
        log_record["level"] = record.levelname


def setup_logging(level: str = LOG_LEVEL, json_format: bool = LOG_JSON) -> logging.Logger:
    """
    Install the stdout handler on the root logger.

    Safe to call more than once: a handler installed by an earlier call is
    replaced, handlers added by anything else are left alone.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root.handlers):
        if getattr(handler, "_filing_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler._filing_handler = True
    if json_format:
        handler.setFormatter(FilingJsonFormatter(JSON_FORMAT, rename_fields={"asctime": "@timestamp"}))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)

    # SQL echo is controlled by SQL_ECHO, not by the app log level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return logging.getLogger(SERVICE_NAME)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{SERVICE_NAME}.{name}")


def _extra(context: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Context dict safe to pass as ``extra``; clashing keys get a ``ctx_`` prefix."""
    return {
        (f"ctx_{key}" if key in _RESERVED else key): value
        for key, value in (context or {}).items()
    }


@contextmanager
def log_timing(operation: str, logger: Optional[logging.Logger] = None):
    """
    Log how long the block took, in milliseconds.

        with log_timing("render Patent Claims", logger):
            ...
    """
    log = logger or events
    start = time.perf_counter()
    try:
        yield
    finally:
        log.info(
            f"{operation} took {(time.perf_counter() - start) * 1000:.1f}ms",
            extra={"operation": operation},
        )


def log_error(
    message: str,
    error: Optional[Exception] = None,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """Log a recovered failure with its context. The traceback is attached when error is given."""
    extra = _extra(context)
    if error is not None:
        extra["error_type"] = type(error).__name__
        extra["error_detail"] = str(error)
    events.error(message, extra=extra, exc_info=error)


def log_warning(message: str, context: Optional[Dict[str, Any]] = None) -> None:
    events.warning(message, extra=_extra(context))


def log_audit(
    action: str,
    resource: str,
    resource_id: Optional[str] = None,
    user_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Record a lifecycle event.

    Args:
        action: create, close, select_type, reset, update or delete
        resource: session or application
        resource_id: Session id or application id
        user_id: Owner id for saved applications
        details: Extra fields, e.g. the filing type
    """
    audit.info(
        f"{resource} {resource_id or '-'}: {action}",
        extra={
            "audit": True,
            "action": action,
            "resource": resource,
            "resource_id": resource_id,
            "user_id": user_id,
            **_extra(details),
        },
    )
