"""Fixtures for HTTP tests.

The application is built by ``create_app`` against the per-test database and
an in-memory rate limit store, then extended with test routes guarded by
each dependency under test. ASGITransport does not run the lifespan, so the
schema and permission catalog come from the ``test_database`` fixture.
"""
from datetime import timedelta

import pytest
import pytest_asyncio
from fastapi import Depends
from httpx import ASGITransport, AsyncClient

from gatekeeper.core.container import get_jwt_engine, get_settings
from gatekeeper.domain.enums import SecurityLevel
from gatekeeper.domain.value_objects import RateLimitConfig
from gatekeeper.infrastructure.rate_limit import MemoryRateLimitStore, RateLimitName
from gatekeeper.main import create_app
from gatekeeper.presentation.middleware import (
    AuthenticatedUser,
    CurrentUser,
    OptionalUser,
    RateLimitRule,
    rate_limit,
    require_permission,
    require_scope,
    require_security,
)
from gatekeeper.services import ApiTokenService, SecurityAuditService, SessionService

GUARDED_LIMIT = RateLimitConfig(window=timedelta(minutes=1), max_attempts=2)


def session_cookie(session_id: str) -> str:
    return f"{get_settings().session_cookie_name}={session_id}"


def _me(user: CurrentUser) -> dict:
    return {
        "userId": user.user_id,
        "credential": user.credential_kind.value,
        "scopes": user.scopes,
    }


@pytest.fixture
def rate_limit_store():
    return MemoryRateLimitStore()


@pytest.fixture
def app(test_database, rate_limit_store):
    application = create_app(
        database=test_database,
        rate_limit_store=rate_limit_store,
        rate_limit_rules=(
            RateLimitRule(
                path_prefix="/guarded/register",
                name=RateLimitName.REGISTER,
                methods=frozenset({"POST"}),
            ),
        ),
    )

    @application.get("/guarded/optional")
    async def optional(user: OptionalUser):
        return {"userId": user.user_id if user else None}

    @application.get("/guarded/standard")
    async def standard(user: AuthenticatedUser):
        return _me(user)

    @application.get("/guarded/high")
    async def high(
        user: CurrentUser = Depends(
            require_security(SecurityLevel.HIGH, ["profile.update"])
        ),
    ):
        return _me(user)

    @application.get("/guarded/critical")
    async def critical(
        user: CurrentUser = Depends(
            require_security(SecurityLevel.CRITICAL, ["user.delete"])
        ),
    ):
        return _me(user)

    @application.get("/guarded/permission")
    async def permission(user: CurrentUser = Depends(require_permission("user.read"))):
        return _me(user)

    @application.get("/guarded/scope")
    async def scope(user: CurrentUser = Depends(require_scope("profile:read"))):
        return _me(user)

    @application.get("/guarded/limited")
    async def limited(_=Depends(rate_limit("guarded", GUARDED_LIMIT))):
        return {"ok": True}

    @application.post("/guarded/register")
    async def register():
        return {"ok": True}

    return application


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest.fixture
def login_session(db_session, logger):
    """Open a database session for a user; returns the cookie header value."""

    async def _login(user) -> str:
        sessions = SessionService(
            db_session, SecurityAuditService(db_session, logger), logger
        )
        created = await sessions.create_session(user.id)
        return session_cookie(created.id)

    return _login


@pytest.fixture
def issue_api_token(db_session, logger):
    """Issue an API token; returns the raw token."""

    async def _issue(user, scopes) -> str:
        service = ApiTokenService(
            db_session, SecurityAuditService(db_session, logger), logger
        )
        return (await service.create_api_token(user.id, name="test", scopes=scopes)).value.token

    return _issue


@pytest.fixture
def issue_jwt():
    def _issue(user, scopes=()) -> str:
        return get_jwt_engine().issue(subject=str(user.id), scopes=list(scopes))

    return _issue
