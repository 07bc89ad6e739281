"""HTTP tests for the multi-tier route security dependencies.

Tests cover:
- STANDARD: session cookie, JWT, API token; 401 and UI redirect when missing
- HIGH: Basic secondary factor from Authorization or the secondary header
- CRITICAL: required permissions, admin bypass
- Audit trail: one auth_failed per denial, route_access on HIGH/CRITICAL success
- Fail closed when the audit trail cannot be written
"""

from unittest.mock import AsyncMock

import pytest

from gatekeeper.core.container import get_audit_service, get_jwt_engine, get_settings
from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure
from gatekeeper.domain.enums import SecurityAction, UserRole
from gatekeeper.domain.errors import AuditError
from gatekeeper.infrastructure.persistence.repositories import (
    SecurityAuditRepository,
)
from gatekeeper.services import PermissionResolver, SecurityAuditService
from tests.helpers import TEST_PASSWORD, basic_header

BROWSER = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/17.0 Safari/605.1.15"
    ),
    "Accept": "text/html,application/xhtml+xml",
}


async def audit_events(test_database, action: SecurityAction):
    async with test_database.get_session() as session:
        return await SecurityAuditRepository(session).list_by_action(action.value)


@pytest.mark.api
class TestStandardTier:
    """Test primary credential handling."""

    async def test_missing_credential_api_401(self, client, test_database):
        response = await client.get("/guarded/standard")

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        events = await audit_events(test_database, SecurityAction.AUTH_FAILED)
        assert len(events) == 1
        assert events[0].user_id is None
        assert events[0].details["reason"] == "missing_credential"

    async def test_missing_credential_browser_redirects(self, client):
        response = await client.get("/guarded/standard", headers=BROWSER)

        assert response.status_code == 302
        assert response.headers["location"] == (
            f"{get_settings().login_path}?redirectTo=/guarded/standard"
        )

    async def test_session_cookie(self, client, make_user, login_session):
        user = await make_user()
        cookie = await login_session(user)

        response = await client.get("/guarded/standard", headers={"Cookie": cookie})

        assert response.status_code == 200
        assert response.json() == {
            "userId": user.id,
            "credential": "session",
            "scopes": [],
        }

    async def test_jwt(self, client, make_user, issue_jwt):
        user = await make_user()
        token = issue_jwt(user, ["profile:read"])

        response = await client.get(
            "/guarded/standard", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 200
        assert response.json()["credential"] == "jwt"
        assert response.json()["scopes"] == ["profile:read"]

    async def test_api_token(self, client, make_user, issue_api_token):
        user = await make_user()
        token = await issue_api_token(user, ["profile:read"])

        response = await client.get(
            "/guarded/standard", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 200
        assert response.json()["credential"] == "api_token"

    @pytest.mark.parametrize(
        "headers",
        [
            {"Authorization": "Bearer gk_unknown-token"},
            {"Authorization": "Bearer not.a.jwt"},
            {"Cookie": "gatekeeper_session=" + "0" * 64},
        ],
    )
    async def test_invalid_credential_401(self, client, test_database, headers):
        response = await client.get("/guarded/standard", headers=headers)

        assert response.status_code == 401
        events = await audit_events(test_database, SecurityAction.AUTH_FAILED)
        assert events[0].details["reason"] == "invalid_credential"

    async def test_jwt_for_unknown_user_401(self, client):
        token = get_jwt_engine().issue(subject="9999", scopes=[])

        response = await client.get(
            "/guarded/standard", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401

    async def test_optional_user(self, client, make_user, login_session):
        user = await make_user()
        cookie = await login_session(user)

        anonymous = await client.get("/guarded/optional")
        known = await client.get("/guarded/optional", headers={"Cookie": cookie})

        assert anonymous.json() == {"userId": None}
        assert known.json() == {"userId": user.id}


@pytest.mark.api
class TestHighTier:
    """Test the HTTP Basic secondary factor."""

    async def test_session_plus_basic(self, client, make_user, login_session, test_database):
        user = await make_user()
        cookie = await login_session(user)

        response = await client.get(
            "/guarded/high",
            headers={
                "Cookie": cookie,
                "Authorization": basic_header(user.email, TEST_PASSWORD),
            },
        )

        assert response.status_code == 200
        events = await audit_events(test_database, SecurityAction.ROUTE_ACCESS)
        assert len(events) == 1
        assert events[0].user_id == user.id
        assert events[0].details["tier"] == "high"

    async def test_jwt_plus_secondary_header(self, client, make_user, issue_jwt):
        user = await make_user()

        response = await client.get(
            "/guarded/high",
            headers={
                "Authorization": f"Bearer {issue_jwt(user)}",
                get_settings().secondary_auth_header: basic_header(
                    user.email, TEST_PASSWORD
                ),
            },
        )

        assert response.status_code == 200

    async def test_missing_basic_challenges(self, client, make_user, login_session, test_database):
        user = await make_user()
        cookie = await login_session(user)

        response = await client.get("/guarded/high", headers={"Cookie": cookie})

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == (
            f'Basic realm="{get_settings().basic_auth_realm}"'
        )
        events = await audit_events(test_database, SecurityAction.AUTH_FAILED)
        assert len(events) == 1
        assert events[0].user_id == user.id
        assert events[0].details["factor"] == "basic"

    async def test_wrong_password(self, client, make_user, login_session):
        user = await make_user()
        cookie = await login_session(user)

        response = await client.get(
            "/guarded/high",
            headers={
                "Cookie": cookie,
                "Authorization": basic_header(user.email, "WrongPass123!"),
            },
        )

        assert response.status_code == 401
        assert response.headers["www-authenticate"].startswith("Basic ")

    async def test_basic_for_another_user(self, client, make_user, login_session):
        """Test the Basic user must be the session's user."""
        user = await make_user("user@example.com")
        other = await make_user("other@example.com")
        cookie = await login_session(user)

        response = await client.get(
            "/guarded/high",
            headers={
                "Cookie": cookie,
                "Authorization": basic_header(other.email, TEST_PASSWORD),
            },
        )

        assert response.status_code == 401

    async def test_high_does_not_check_permissions(
        self, client, make_user, login_session, db_session, logger
    ):
        """Test permissions listed on a HIGH route are not enforced."""
        user = await make_user()
        resolver = PermissionResolver(
            db_session, SecurityAuditService(db_session, logger), logger
        )
        await resolver.revoke_permission_from_user(user.id, "profile.update")
        cookie = await login_session(user)

        response = await client.get(
            "/guarded/high",
            headers={
                "Cookie": cookie,
                "Authorization": basic_header(user.email, TEST_PASSWORD),
            },
        )

        assert response.status_code == 200


@pytest.mark.api
class TestCriticalTier:
    """Test permission enforcement."""

    async def test_unauthenticated_audited(self, client, test_database):
        """Test an anonymous request writes exactly one failed audit row."""
        response = await client.get("/guarded/critical")

        assert response.status_code == 401
        events = await audit_events(test_database, SecurityAction.AUTH_FAILED)
        assert len(events) == 1
        assert events[0].user_id is None
        assert events[0].success is False
        assert events[0].details["tier"] == "critical"
        assert events[0].details["path"] == "/guarded/critical"

    async def test_regular_user_forbidden(self, client, make_user, login_session, test_database):
        user = await make_user()
        cookie = await login_session(user)

        response = await client.get(
            "/guarded/critical",
            headers={
                "Cookie": cookie,
                "Authorization": basic_header(user.email, TEST_PASSWORD),
            },
        )

        assert response.status_code == 403
        events = await audit_events(test_database, SecurityAction.AUTH_FAILED)
        assert len(events) == 1
        assert events[0].details["missingPermissions"] == ["user.delete"]
        assert events[0].details["reason"] == "insufficient_permission"

    async def test_admin_allowed(self, client, make_user, login_session, test_database):
        admin = await make_user("admin@example.com", role=UserRole.ADMIN)
        cookie = await login_session(admin)

        response = await client.get(
            "/guarded/critical",
            headers={
                "Cookie": cookie,
                "Authorization": basic_header(admin.email, TEST_PASSWORD),
            },
        )

        assert response.status_code == 200
        events = await audit_events(test_database, SecurityAction.ROUTE_ACCESS)
        assert events[0].details["tier"] == "critical"

    async def test_audit_failure_fails_closed(self, app, client):
        """Test a denial that cannot be audited answers 503."""
        audit = AsyncMock()
        audit.log_security_event.return_value = Failure(
            error=AuditError(code=ErrorCode.AUDIT_RECORD_FAILED, message="down")
        )
        app.dependency_overrides[get_audit_service] = lambda: audit

        response = await client.get("/guarded/critical")

        assert response.status_code == 503
