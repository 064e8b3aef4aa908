"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ssogate import __version__
from ssogate.api.router import api_router
from ssogate.config import settings
from ssogate.core.cache import close_redis_pool
from ssogate.core.database import async_engine, unit_of_work
from ssogate.core.errors import register_exception_handlers
from ssogate.core.logging import (
    RequestIdMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
)
from ssogate.modules.accounts.invariants import verify_platform_invariants
from ssogate.sso.providers import install_providers
from ssogate.sso.registry import ProviderRegistry


configure_logging(settings.log_level, json_output=settings.is_production)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Refuses to start when the platform-mode invariants are violated.
    """
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
        platform_mode=settings.platform_mode.value,
    )

    async with unit_of_work() as session:
        await verify_platform_invariants(session, settings.platform_mode)

    yield

    logger.info("application_shutdown")

    await close_redis_pool()
    logger.info("redis_pool_closed")

    await async_engine.dispose()
    logger.info("database_engine_disposed")


def create_app(
    registry: ProviderRegistry | None = None,
    check_invariants: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        registry: Provider registry to activate providers in; defaults to
            the process-wide registry
        check_invariants: Run the start-up platform checks in the lifespan

    Returns:
        Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.app_name,
        description="Federated SSO login and identity reconciliation",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan if check_invariants else None,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
    )

    cors_origins = settings.cors_origins
    if settings.is_development and not cors_origins:
        cors_origins = [settings.app_url]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    # Request ID middleware is added last so it runs first
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(api_router)
    install_providers(app, registry)

    return app
