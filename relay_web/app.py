"""FastAPI application for the WhatsApp relay."""

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from relay import __version__
from relay.core.exceptions import ConfigurationError
from relay.core.settings import RelaySettings, get_settings
from relay.services.container import RelayServices
from relay_web.exception_handlers import register_exception_handlers
from relay_web.middleware import CorrelationMiddleware
from relay_web.routes import health_router, whatsapp_router
from relay_web.routes.whatsapp import configure_rate_limits, limiter


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for startup and shutdown.

    Handles:
    - WhatsApp session initialization (background, the port opens immediately)
    - OTP cleanup scheduler
    - Session teardown on shutdown (SIGINT/SIGTERM via uvicorn)
    """
    services: RelayServices = app.state.services

    logger.info("WhatsApp relay starting up...")
    await services.start()

    yield

    logger.info("WhatsApp relay shutting down...")
    try:
        await asyncio.wait_for(services.shutdown(), timeout=15)
        logger.info("WhatsApp service destroyed successfully")
    except asyncio.TimeoutError:
        logger.error("WhatsApp relay shutdown timed out after 15s")
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")


def create_app(
    settings: Optional[RelaySettings] = None, services: Optional[RelayServices] = None
) -> FastAPI:
    """
    Factory function to create FastAPI application instance.

    Args:
        settings: Relay settings (defaults to the environment-loaded singleton)
        services: Service container (defaults to one built from settings with the
            Playwright WhatsApp Web driver)

    Returns:
        Configured FastAPI application instance

    Raises:
        ConfigurationError: If the CORS origins are not allowed in this environment
    """
    settings = settings or get_settings()
    services = services or RelayServices.build(settings)
    is_dev = settings.is_development()

    app = FastAPI(
        title="Barlink WhatsApp Relay",
        version=__version__,
        description="OTP verification and job-application notifications over WhatsApp.",
        lifespan=lifespan,
        docs_url="/docs" if is_dev else None,
        redoc_url="/redoc" if is_dev else None,
        openapi_url="/openapi.json" if is_dev else None,
    )
    app.state.settings = settings
    app.state.services = services

    # Correlation ID middleware for request tracking
    app.add_middleware(CorrelationMiddleware)

    try:
        allowed_origins = settings.get_cors_origins()
    except ValueError as e:
        raise ConfigurationError(f"Invalid ALLOWED_ORIGINS: {e}") from e
    if not allowed_origins:
        logger.warning("No CORS origins configured - browser callers will be rejected")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=[
            "Accept",
            "Content-Type",
            "Authorization",
            "X-API-Key",
            "X-Request-ID",
        ],
        expose_headers=["X-Request-ID"],
        max_age=3600,
    )

    configure_rate_limits(settings)
    app.state.limiter = limiter

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(whatsapp_router)

    return app
