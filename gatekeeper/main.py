"""FastAPI application factory.

Startup creates missing tables and seeds the default permission catalog;
both steps are idempotent. Shutdown disposes the engine.

Usage:
    uvicorn gatekeeper.main:app
"""

from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from gatekeeper.core.container import (
    get_database,
    get_logger,
    get_rate_limit_store,
    get_settings,
)
from gatekeeper.domain.protocols import RateLimitStoreProtocol
from gatekeeper.infrastructure.persistence.database import Database
from gatekeeper.presentation.middleware import (
    DEFAULT_RULES,
    RateLimitMiddleware,
    RateLimitRule,
)
from gatekeeper.services import PermissionResolver, SecurityAuditService


def create_app(
    *,
    database: Database | None = None,
    rate_limit_rules: Sequence[RateLimitRule] = DEFAULT_RULES,
    rate_limit_store: RateLimitStoreProtocol | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        database: Database to use instead of the one from settings.
        rate_limit_rules: Path-prefix rules for ``RateLimitMiddleware``.
        rate_limit_store: Counter store instead of the configured backend.
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        db = database or get_database()
        logger = get_logger()

        await db.create_all()
        async with db.get_session() as session:
            resolver = PermissionResolver(
                session, SecurityAuditService(session, logger), logger
            )
            await resolver.initialize_permissions()
        logger.info("application_started", environment=settings.environment.value)

        yield

        await db.close()
        logger.info("application_stopped")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    if database is not None:
        app.dependency_overrides[get_database] = lambda: database
    if rate_limit_store is not None:
        app.dependency_overrides[get_rate_limit_store] = lambda: rate_limit_store

    app.add_middleware(
        RateLimitMiddleware,
        rules=rate_limit_rules,
        store=rate_limit_store,
        database=database,
    )

    @app.get("/health")
    async def health() -> JSONResponse:
        """Health check for monitoring and load balancers."""
        db = database or get_database()
        if not await db.check_connection():
            return JSONResponse(
                status_code=503, content={"status": "unhealthy", "database": "down"}
            )
        return JSONResponse(content={"status": "healthy", "database": "up"})

    return app


app = create_app()
