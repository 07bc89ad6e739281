"""Pytest configuration.

This configuration ensures:
1. Settings load without a .env file (environment set before import)
2. Async tests are marked automatically
3. Every integration test gets its own SQLite database file
"""

import asyncio
import os

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-with-at-least-32-characters!")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from gatekeeper.domain.entities.user import User  # noqa: E402
from gatekeeper.domain.enums import UserRole  # noqa: E402
from gatekeeper.infrastructure.persistence.database import Database  # noqa: E402
from gatekeeper.infrastructure.persistence.repositories import (  # noqa: E402
    UserRepository,
)
from gatekeeper.infrastructure.security import BcryptPasswordService  # noqa: E402
from gatekeeper.services import (  # noqa: E402
    PermissionResolver,
    SecurityAuditService,
)

from tests.helpers import TEST_PASSWORD  # noqa: E402


# Pytest markers for different test types
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests with mocked dependencies")
    config.addinivalue_line(
        "markers", "integration: Integration tests with a real (SQLite) database"
    )
    config.addinivalue_line("markers", "api: HTTP tests through the ASGI app")


def pytest_collection_modifyitems(config, items):
    """Automatically add asyncio marker to async test functions."""
    for item in items:
        if asyncio.iscoroutinefunction(item.function):
            item.add_marker(pytest.mark.asyncio)


@pytest.fixture
def logger():
    """Logger double; assertions inspect the event names it received."""
    return Mock()


@pytest.fixture(scope="session")
def password_service():
    """Bcrypt service at the minimum cost factor."""
    return BcryptPasswordService(cost_factor=4)


@pytest_asyncio.fixture
async def test_database(tmp_path, logger):
    """Fresh SQLite database with tables and the default permission catalog."""
    db = Database(database_url=f"sqlite+aiosqlite:///{tmp_path / 'gatekeeper.db'}")
    await db.create_all()
    async with db.get_session() as session:
        resolver = PermissionResolver(
            session, SecurityAuditService(session, logger), logger
        )
        await resolver.initialize_permissions()

    yield db

    await db.close()


@pytest_asyncio.fixture
async def db_session(test_database):
    """Session on the test database."""
    async with test_database.get_session() as session:
        yield session


@pytest.fixture
def make_user(db_session, password_service):
    """Factory creating password users.

    Usage:
        user = await make_user("ada@example.com", role=UserRole.ADMIN)
    """

    async def _make_user(
        email: str = "user@example.com",
        *,
        role: UserRole = UserRole.USER,
        password: str = TEST_PASSWORD,
    ) -> User:
        return await UserRepository(db_session).create(
            email=email,
            name=email.split("@")[0].title(),
            password_hash=password_service.hash_password(password),
            role=role,
            email_verified=True,
        )

    return _make_user
