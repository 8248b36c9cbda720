"""
HTTP middleware: response hardening and per-request logging.

Filing records carry personal data (inventor names, owner addresses), so
responses under the session and application routes are never cached, and
request logs carry ids and timings only.
"""

import logging
import re
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

PRIVATE_PREFIXES = ("/sessions", "/applications")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

_SESSION_PATH = re.compile(r"^/sessions/([A-Za-z0-9_-]+)")
_REQUEST_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

logger = logging.getLogger("ip-filing.requests")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        if request.url.path.startswith(PRIVATE_PREFIXES):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate"
            response.headers["Pragma"] = "no-cache"
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    One log line per request with method, path, status, duration and the
    session id when the path names one.

    Echoes a well-formed incoming X-Request-ID or assigns a new one.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID", "")
        if not _REQUEST_ID.match(request_id):
            request_id = uuid.uuid4().hex[:16]
        match = _SESSION_PATH.match(request.url.path)
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "session_id": match.group(1) if match else None,
        }

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"{request.method} {request.url.path} failed", extra=context)
            raise
        elapsed = time.perf_counter() - start

        logger.info(
            f"{request.method} {request.url.path} {response.status_code} {elapsed * 1000:.1f}ms",
            extra={**context, "status": response.status_code, "duration_ms": round(elapsed * 1000, 1)},
        )
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.3f}"
        return response
