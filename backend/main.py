"""
IP Filing Assistant - FastAPI application.

Run with ``python main.py`` from backend/, or ``uvicorn main:app``.
"""

from contextlib import asynccontextmanager
from typing import List

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from api.routers import sessions, system
from core.config import CORS_ORIGINS
from core.constants import DEFAULT_HOST, DEFAULT_PORT
from core.errors import FilingError, filing_error_handler
from core.logging import get_logger, setup_logging
from core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from core.rate_limit import limiter, rate_limit_exceeded_handler
from core.security import API_KEY_NAME, verify_api_key

setup_logging()
logger = get_logger(__name__)


def _origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Filing backend starting")
    yield
    # Live sessions do not survive a restart; stop their background work cleanly
    await sessions.get_registry().close_all()
    logger.info("Filing backend stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="IP Filing Assistant API",
        description="Guided patent and trademark filing sessions with readiness scoring",
        version="1.0.0",
        dependencies=[Depends(verify_api_key)],
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(FilingError, filing_error_handler)

    # Last added runs first: CORS, then security headers, then request logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_origins(CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["content-type", API_KEY_NAME.lower(), "x-request-id", "accept", "origin"],
        expose_headers=["content-disposition", "x-request-id"],
        max_age=3600,
    )

    app.include_router(system.router, tags=["System"])
    app.include_router(sessions.router, tags=["Sessions"])
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=DEFAULT_HOST, port=DEFAULT_PORT)
