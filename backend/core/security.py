"""
API-key authentication for the filing API.

Every route except the public ones requires the shared key in the
X-Filing-Key header. DISABLE_AUTH=true turns the check off for local
development.
"""

import logging
from secrets import compare_digest
from typing import Optional

from fastapi import HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader

from . import config

logger = logging.getLogger(__name__)

API_KEY_NAME = "X-Filing-Key"
PUBLIC_PATHS = frozenset({"/health", "/docs", "/openapi.json"})

# auto_error=False so a missing key is a 401 with our own detail
api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)


def _client(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def verify_api_key(request: Request, api_key: Optional[str] = Security(api_key_header)) -> None:
    """
    Raises:
        HTTPException: 503 when the server has no key configured, 401 when
            the header is missing or empty, 403 when the key does not match
    """
    if config.DISABLE_AUTH or request.url.path in PUBLIC_PATHS:
        return

    if not config.FILING_API_KEY:
        logger.error("FILING_API_KEY is not set; refusing authenticated routes")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API authentication not configured",
        )

    if not api_key:
        logger.warning(f"Request without {API_KEY_NAME} from {_client(request)} to {request.url.path}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if not compare_digest(api_key.encode("utf-8"), config.FILING_API_KEY.encode("utf-8")):
        logger.warning(f"Invalid {API_KEY_NAME} from {_client(request)}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid API key")


if config.DISABLE_AUTH:
    logger.warning("API authentication is DISABLED (DISABLE_AUTH=true)")
