"""
Rate limits for the filing API (slowapi).

Clients are keyed by their API key when they send one, so several users
behind one proxy do not share a limit; anonymous requests fall back to the
remote address. Uploads and generation call out to the blob store, the
renderer and the suggestion provider and get the tightest limits.
"""

import hashlib
import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .constants import RATE_LIMIT_GENERATE, RATE_LIMIT_SESSION, RATE_LIMIT_UPLOAD
from .errors import ErrorCode
from .security import API_KEY_NAME

logger = logging.getLogger(__name__)


def client_key(request: Request) -> str:
    api_key = request.headers.get(API_KEY_NAME)
    if api_key:
        # Never keep the raw key in limiter storage
        return "key:" + hashlib.sha256(api_key.encode("utf-8")).hexdigest()[:16]
    return "ip:" + get_remote_address(request)


limiter = Limiter(key_func=client_key)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit hit on {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=429,
        content={
            "detail": {
                "code": ErrorCode.RATE_LIMITED.value,
                "message": "Too many requests. Please slow down.",
                "limit": str(exc.detail),
            }
        },
    )


class RateLimits:
    UPLOAD = RATE_LIMIT_UPLOAD
    GENERATE = RATE_LIMIT_GENERATE
    SESSION = RATE_LIMIT_SESSION
