"""Centralized dependency injection.

Application-scoped singletons (``lru_cache``):
- Logger (structlog console adapter)
- Database (async engine and session factory)
- JWT engine, password hashing
- Rate limit store (database, memory or redis per settings)

Request-scoped factories (FastAPI ``Depends``):
- Database session and a separate audit session
- Security services built over those sessions

Usage:
    # Application code
    logger = get_logger()

    # FastAPI endpoint
    @router.get("/me/devices")
    async def list_devices(
        devices: DeviceTrackingService = Depends(get_device_tracking_service),
    ): ...

Tests swap implementations with ``app.dependency_overrides``.
"""

import secrets
from datetime import timedelta
from functools import lru_cache
from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gatekeeper.core.config import Settings
from gatekeeper.core.config import get_settings as _get_settings
from gatekeeper.core.enums import Environment, RateLimitBackend
from gatekeeper.domain.protocols import (
    LoggerProtocol,
    PasswordHashingProtocol,
    RateLimitStoreProtocol,
)
from gatekeeper.domain.value_objects.suspicious_activity import (
    SuspiciousActivityPolicy,
)
from gatekeeper.infrastructure.persistence.database import Database
from gatekeeper.infrastructure.security import BcryptPasswordService, JWTEngine
from gatekeeper.services import (
    ApiTokenService,
    BasicAuthVerifier,
    DeviceTrackingService,
    MfaService,
    PermissionResolver,
    RateLimiter,
    SecurityAuditService,
    SessionService,
)


def get_settings() -> Settings:
    """Cached application settings."""
    return _get_settings()


# ============================================================================
# Application-Scoped Dependencies (Singletons)
# ============================================================================


@lru_cache()
def get_logger() -> LoggerProtocol:
    """Get logger singleton (app-scoped).

    Development renders colored console lines; every other environment
    renders JSON unless ``log_json`` says otherwise.
    """
    from gatekeeper.infrastructure.logging import ConsoleAdapter

    settings = get_settings()
    use_json = settings.log_json or settings.environment != Environment.DEVELOPMENT
    return ConsoleAdapter(use_json=use_json, level=settings.log_level)


@lru_cache()
def get_database() -> Database:
    """Get database manager singleton (app-scoped).

    Note:
        Prefer get_db_session() for per-request sessions.
    """
    settings = get_settings()
    return Database(database_url=settings.database_url, echo=settings.db_echo)


@lru_cache()
def get_jwt_engine() -> JWTEngine:
    """Get JWT engine singleton (HS256, secret from settings)."""
    settings = get_settings()
    return JWTEngine(
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        default_ttl=timedelta(minutes=settings.jwt_default_ttl_minutes),
    )


@lru_cache()
def get_password_service() -> PasswordHashingProtocol:
    """Get bcrypt password service singleton."""
    return BcryptPasswordService(cost_factor=get_settings().bcrypt_rounds)


@lru_cache()
def get_dummy_password_hash() -> str:
    """Bcrypt hash of a random password, checked when an email is unknown."""
    return get_password_service().hash_password(secrets.token_urlsafe(16))


@lru_cache()
def get_rate_limit_store() -> RateLimitStoreProtocol:
    """Get rate limit store singleton (app-scoped).

    Container owns the backend decision (``RATE_LIMIT_BACKEND``):
        - database: DatabaseRateLimitStore (durable, default)
        - memory: MemoryRateLimitStore (process-local, lost on restart)
        - redis: RedisRateLimitStore (shared across processes)
    """
    settings = get_settings()
    retention = timedelta(hours=settings.rate_limit_retention_hours)

    match settings.rate_limit_backend:
        case RateLimitBackend.REDIS:
            from redis.asyncio import Redis

            from gatekeeper.infrastructure.rate_limit import RedisRateLimitStore

            client = Redis.from_url(settings.redis_url, decode_responses=True)
            return RedisRateLimitStore(redis_client=client, retention=retention)
        case RateLimitBackend.MEMORY:
            from gatekeeper.infrastructure.rate_limit import MemoryRateLimitStore

            return MemoryRateLimitStore()
        case _:
            from gatekeeper.infrastructure.rate_limit import DatabaseRateLimitStore

            return DatabaseRateLimitStore(get_database())


@lru_cache()
def get_suspicious_activity_policy() -> SuspiciousActivityPolicy:
    """Suspicious activity thresholds from settings."""
    settings = get_settings()
    return SuspiciousActivityPolicy(
        event_limit=settings.suspicious_event_limit,
        window=timedelta(hours=settings.suspicious_window_hours),
        max_locations=settings.suspicious_max_locations,
        max_failed_logins=settings.suspicious_max_failed_logins,
    )


# ============================================================================
# Request-Scoped Dependencies (Per-Request)
# ============================================================================


async def get_db_session(
    database: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session (request-scoped).

    Commits on success, rolls back on exception, always closes.
    """
    async with database.get_session() as session:
        yield session


async def get_audit_session(
    database: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """Get audit session (request-scoped, independent lifecycle).

    Audit rows commit on their own session so a rolled back request
    transaction never takes its denial events with it.
    """
    async with database.get_session() as session:
        yield session


def get_rate_limiter(
    store: RateLimitStoreProtocol = Depends(get_rate_limit_store),
    logger: LoggerProtocol = Depends(get_logger),
) -> RateLimiter:
    return RateLimiter(
        store,
        logger,
        retention=timedelta(hours=get_settings().rate_limit_retention_hours),
    )


def get_audit_service(
    session: AsyncSession = Depends(get_audit_session),
    logger: LoggerProtocol = Depends(get_logger),
    policy: SuspiciousActivityPolicy = Depends(get_suspicious_activity_policy),
) -> SecurityAuditService:
    return SecurityAuditService(session, logger, policy)


def get_api_token_service(
    session: AsyncSession = Depends(get_db_session),
    audit: SecurityAuditService = Depends(get_audit_service),
    logger: LoggerProtocol = Depends(get_logger),
) -> ApiTokenService:
    return ApiTokenService(
        session, audit, logger, token_prefix=get_settings().api_token_prefix
    )


def get_session_service(
    session: AsyncSession = Depends(get_db_session),
    audit: SecurityAuditService = Depends(get_audit_service),
    logger: LoggerProtocol = Depends(get_logger),
) -> SessionService:
    return SessionService(
        session,
        audit,
        logger,
        session_ttl=timedelta(days=get_settings().session_ttl_days),
    )


def get_device_tracking_service(
    session: AsyncSession = Depends(get_db_session),
    audit: SecurityAuditService = Depends(get_audit_service),
    logger: LoggerProtocol = Depends(get_logger),
) -> DeviceTrackingService:
    return DeviceTrackingService(session, audit, logger)


def get_mfa_service(
    session: AsyncSession = Depends(get_db_session),
    audit: SecurityAuditService = Depends(get_audit_service),
    logger: LoggerProtocol = Depends(get_logger),
) -> MfaService:
    settings = get_settings()
    return MfaService(
        session,
        audit,
        logger,
        issuer=settings.mfa_issuer,
        backup_code_count=settings.mfa_backup_code_count,
    )


def get_permission_resolver(
    session: AsyncSession = Depends(get_db_session),
    audit: SecurityAuditService = Depends(get_audit_service),
    logger: LoggerProtocol = Depends(get_logger),
) -> PermissionResolver:
    return PermissionResolver(session, audit, logger)


def get_basic_auth_verifier(
    session: AsyncSession = Depends(get_db_session),
    password_service: PasswordHashingProtocol = Depends(get_password_service),
    logger: LoggerProtocol = Depends(get_logger),
) -> BasicAuthVerifier:
    return BasicAuthVerifier(
        session, password_service, logger, dummy_hash=get_dummy_password_hash()
    )
