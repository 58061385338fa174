"""FastAPI application factory and lifespan management."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from src.api.dependencies import get_settings, init_services, shutdown_services
from src.api.middleware.error_handler import (
    error_handler_middleware,
    validation_exception_handler,
)
from src.api.middleware.logging import LoggingMiddleware
from src.api.openapi.routes import health, uploads, videos, webhooks
from src.commons.settings.models import Settings
from src.commons.telemetry import JsonFormatter, TextFormatter, configure_logging

UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


def _log_level(settings: Settings) -> int:
    return logging.getLevelName(
        (settings.telemetry.log_level or settings.app.log_level).upper()
    )


def _formatter(settings: Settings) -> logging.Formatter:
    if settings.telemetry.log_format == "json":
        return JsonFormatter(service=settings.app.name)
    return TextFormatter()


def _setup_logging(settings: Settings) -> None:
    """Route the ``src`` logger tree through our formatter.

    Runs at import time so the format is in place before uvicorn logs
    anything about this module.
    """
    configure_logging(
        level=settings.telemetry.log_level or settings.app.log_level,
        format_type=settings.telemetry.log_format,
        logger_name="src",
        service=settings.app.name,
    )
    logging.getLogger().setLevel(_log_level(settings))


def _adopt_uvicorn_loggers(settings: Settings) -> None:
    """Give uvicorn's loggers the same format once its handlers exist."""
    level = _log_level(settings)
    formatter = _formatter(settings)
    for name in UVICORN_LOGGERS:
        uv_logger = logging.getLogger(name)
        uv_logger.setLevel(level)
        if not uv_logger.handlers:
            uv_logger.addHandler(logging.StreamHandler(sys.stdout))
            uv_logger.propagate = False
        for handler in uv_logger.handlers:
            handler.setFormatter(formatter)
            handler.setLevel(level)


_setup_logging(get_settings())


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Open provider and store connections for the app's lifetime.

    Index creation happens in ``init_services``; the connections are closed
    on shutdown even if a request handler is still draining.
    """
    settings = get_settings()
    _adopt_uvicorn_loggers(settings)
    await init_services(settings)
    try:
        yield
    finally:
        await shutdown_services()


def create_app() -> FastAPI:
    """Build the ingestion API.

    Health checks are mounted at the root. Uploads, the provider webhook
    and the video management routes live under ``server.api_prefix``.
    """
    settings = get_settings()
    docs = settings.server.docs_enabled

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description=(
            "Lesson video ingestion: upload tickets, provider webhooks "
            "and status reconciliation"
        ),
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    # Registered last so it wraps the logging middleware too
    app.middleware("http")(error_handler_middleware)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(health.router, tags=["Health"])
    prefix = settings.server.api_prefix
    app.include_router(uploads.router, prefix=prefix, tags=["Uploads"])
    app.include_router(webhooks.router, prefix=prefix, tags=["Webhooks"])
    app.include_router(videos.router, prefix=prefix, tags=["Videos"])

    return app


app = create_app()
