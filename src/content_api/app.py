# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""FastAPI application factory for a ContentAPI."""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from . import __version__, metrics
from .api import ContentAPI
from .config import Settings, get_settings
from .logging_config import configure_logging

logger = structlog.get_logger(__name__)


def create_app(api: ContentAPI, settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application serving ``api``.

    The metrics switch and prefix of ``settings`` are applied to ``api``.

    Args:
        api: The content API whose route table is mounted
        settings: Application settings (cached settings by default)
    """
    settings = settings or get_settings()
    configure_logging(settings)
    api.configure(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version or __version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    origins = settings.cors_origins_list
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=settings.cors_allow_methods_list,
            allow_headers=settings.cors_allow_headers_list,
        )

    if settings.enable_metrics:
        # Exposed before the first request is counted
        metrics.route_metrics(settings.metrics_prefix)

        # Registered before the API routes so the catch-all cannot shadow it
        @app.get("/metrics", include_in_schema=False)
        def prometheus_metrics() -> Response:
            return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(api.router())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle errors raised outside of route dispatch."""
        logger.exception("Unhandled application error", path=request.url.path)
        return api.error_response(status.HTTP_500_INTERNAL_SERVER_ERROR)

    logger.info(
        "Content API ready",
        base_path=api.base,
        routes=len(api.routes()),
        environment=settings.environment,
    )
    return app
