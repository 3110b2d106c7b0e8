"""Main FastAPI application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException

from vault_index.api.v1.router import api_router
from vault_index.config import Settings, get_settings
from vault_index.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    unhandled_exception_handler,
)
from vault_index.core.logging import get_logger, setup_logging
from vault_index.services.engine import IndexEngine

logger = get_logger(__name__)


def create_app(settings: Settings | None = None, engine: IndexEngine | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to build from; environment settings when omitted.
        engine: Pre-built engine, mainly for tests. Its lifecycle is still managed
            by the application lifespan.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    settings = settings or (engine.settings if engine else get_settings())
    setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # Startup
        logger.info("Starting up %s", settings.app_name)
        app.state.engine = engine or IndexEngine(settings)
        await app.state.engine.start()
        try:
            yield
        finally:
            # Shutdown
            logger.info("Shutting down %s", settings.app_name)
            await app.state.engine.aclose()

    app = FastAPI(
        title=settings.app_name,
        description="Semantic index over a vault of text documents",
        version=settings.app_version,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Register exception handlers
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Include API router with versioning
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    return app
