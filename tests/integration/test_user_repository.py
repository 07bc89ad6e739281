"""Integration tests for UserRepository OAuth links against SQLite.

A user without a password hash must be linked to at least one OAuth account.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from gatekeeper.infrastructure.persistence.repositories import UserRepository


@pytest.fixture
def users(db_session):
    return UserRepository(db_session)


@pytest.mark.integration
class TestOAuthLinks:
    """Test OAuth-only users and additional links."""

    async def test_passwordless_user_gets_initial_link(self, users):
        user = await users.create(
            email="OAuth@Example.com",
            name="OAuth",
            oauth_provider="github",
            oauth_account_id="gh-1",
        )

        assert user.password_hash is None
        assert user.email == "oauth@example.com"
        assert await users.count_oauth_accounts(user.id) == 1

    async def test_passwordless_user_without_link_rejected(self, users):
        with pytest.raises(ValueError, match="OAuth"):
            await users.create(email="nobody@example.com", name="Nobody")

        with pytest.raises(ValueError, match="OAuth"):
            await users.create(
                email="half@example.com", name="Half", oauth_provider="github"
            )

        assert await users.find_by_email("nobody@example.com") is None

    async def test_link_additional_account(self, users):
        user = await users.create(
            email="multi@example.com",
            name="Multi",
            oauth_provider="github",
            oauth_account_id="gh-2",
        )

        await users.link_oauth_account(
            user.id, provider="google", provider_account_id="g-2"
        )

        assert await users.count_oauth_accounts(user.id) == 2

    async def test_password_user_has_no_links(self, make_user, users):
        user = await make_user()

        assert await users.count_oauth_accounts(user.id) == 0

    async def test_provider_account_linked_once(self, users, make_user, db_session):
        """Test one provider account cannot back two users."""
        first = await users.create(
            email="first@example.com",
            name="First",
            oauth_provider="github",
            oauth_account_id="gh-3",
        )
        second = await make_user("second@example.com")

        with pytest.raises(IntegrityError):
            await users.link_oauth_account(
                second.id, provider="github", provider_account_id="gh-3"
            )
        await db_session.rollback()

        assert await users.count_oauth_accounts(first.id) == 1
        assert await users.count_oauth_accounts(second.id) == 0
