"""
Application factory for FastAPI.

This module provides the create_app() function that creates and configures
the FastAPI application instance.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from api.v1 import api_router
from app.routes import health_router, root_router
from core.config import settings
from core.exceptions import DomainError
from core.instrumentator import instrumentator
from core.lifespan import lifespan
from core.middleware import CorrelationIdMiddleware
from core.rate_limit import limiter

logger = logging.getLogger(__name__)


def _field_name(loc) -> str:
    parts = [str(part) for part in loc if part not in ("body", "query", "path", "form")]
    return ".".join(parts) or "request"


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report request validation failures as 400 with the offending field names."""
    errors = exc.errors()
    missing = [_field_name(err["loc"]) for err in errors if err.get("type") == "missing"]
    invalid = [
        f"{_field_name(err['loc'])} ({err.get('msg', 'invalid')})"
        for err in errors
        if err.get("type") != "missing"
    ]

    messages = []
    if missing:
        messages.append(f"The following fields are required: {', '.join(missing)}")
    if invalid:
        messages.append(f"Invalid fields: {', '.join(invalid)}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": ". ".join(messages)},
    )


async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500 for anything unexpected; the message is only echoed in debug mode."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    detail = str(exc) if settings.api.debug else "Internal server error"
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": detail})


def create_app() -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application with all necessary
    middleware, routes, and instrumentation.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    prefix = settings.api.api_prefix

    app = FastAPI(
        title=settings.api.app_name,
        version=settings.api.app_version,
        description="Bank branch operations dashboard: device liveness, recordings and complaints",
        lifespan=lifespan,
        docs_url=f"{prefix}/docs",
        redoc_url=f"{prefix}/redoc",
        openapi_url=f"{prefix}/openapi.json",
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(DomainError, domain_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With", "X-Correlation-ID"],
        expose_headers=["X-Correlation-ID"],
    )

    # Added last so it runs first and every log line carries the id
    app.add_middleware(CorrelationIdMiddleware)

    # Include routers
    app.include_router(root_router)
    app.include_router(health_router)
    app.include_router(api_router, prefix=prefix)

    # Instrumentation
    instrumentator.instrument(app)
    instrumentator.expose(app, endpoint="/metrics")

    return app
