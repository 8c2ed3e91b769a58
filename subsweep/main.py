"""
FastAPI application entrypoint for the subscription manager.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from subsweep.api.routes import router as api_router
from subsweep.core.config import get_settings
from subsweep.core.errors import ConfigurationError, GuardError, RateLimitedError
from subsweep.core.logging import configure_logging

logger = logging.getLogger(__name__)


async def guard_error_handler(request: Request, exc: GuardError) -> JSONResponse:
    """Render guard errors as ``{"error": {"code", "message"}}`` without internals."""
    if isinstance(exc, ConfigurationError):
        logger.error("Configuration error on %s: %s", request.url.path, exc.message)

    body = {"error": {"code": exc.public_code, "message": exc.user_message}}
    headers = {}
    if isinstance(exc, RateLimitedError):
        body["error"]["retry_after_ms"] = exc.retry_after_ms
        headers["Retry-After"] = str(exc.retry_after_seconds)
    return JSONResponse(status_code=int(exc.status_code), content=body, headers=headers)


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="SubSweep",
        version="0.1.0",
        description="REST API for guarded YouTube subscription management.",
    )
    app.add_exception_handler(GuardError, guard_error_handler)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app", "guard_error_handler"]
