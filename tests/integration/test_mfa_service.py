"""Integration tests for MfaService against SQLite.

Tests cover:
- TOTP verification with one step of drift
- Two-phase enrollment (pending secret, then enable with a valid code)
- Backup codes: single use, case-insensitive, regeneration
- verify_mfa_code order (TOTP, then backup code) and enabled requirement
- Status, disable and audit events
"""

from datetime import UTC, datetime, timedelta
from urllib.parse import parse_qs, urlparse

import pyotp
import pytest
from sqlalchemy import select

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure, Success
from gatekeeper.domain.enums import SecurityAction
from gatekeeper.infrastructure.persistence.models.mfa_secret import MfaSecretModel
from gatekeeper.infrastructure.persistence.repositories import (
    SecurityAuditRepository,
)
from gatekeeper.infrastructure.security import hash_token
from gatekeeper.services import MfaService, SecurityAuditService, verify_totp

AT = datetime(2025, 3, 1, 12, 0, 15, tzinfo=UTC)


@pytest.fixture
def mfa_service(db_session, logger):
    return MfaService(
        db_session,
        SecurityAuditService(db_session, logger),
        logger,
        issuer="Gatekeeper Test",
        backup_code_count=4,
    )


async def _enrolled(mfa_service, user):
    setup = (await mfa_service.generate_mfa_secret(user.id, user.email)).value
    result = await mfa_service.enable_mfa(user.id, pyotp.TOTP(setup.secret).now())
    assert isinstance(result, Success)
    return setup


@pytest.mark.unit
class TestVerifyTotp:
    """Test code checks at a fixed instant."""

    @pytest.fixture
    def secret(self):
        return pyotp.random_base32()

    def test_current_code(self, secret):
        assert verify_totp(secret, pyotp.TOTP(secret).at(AT), AT)

    @pytest.mark.parametrize("offset", [-30, 30])
    def test_adjacent_step_accepted(self, secret, offset):
        code = pyotp.TOTP(secret).at(AT + timedelta(seconds=offset))

        assert verify_totp(secret, code, AT)

    @pytest.mark.parametrize("offset", [-90, 90])
    def test_distant_step_rejected(self, secret, offset):
        code = pyotp.TOTP(secret).at(AT + timedelta(seconds=offset))

        assert not verify_totp(secret, code, AT)

    def test_spaces_ignored(self, secret):
        code = pyotp.TOTP(secret).at(AT)

        assert verify_totp(secret, f"{code[:3]} {code[3:]}", AT)

    @pytest.mark.parametrize("code", ["", "abcdef", "12345x"])
    def test_non_numeric_rejected(self, secret, code):
        assert not verify_totp(secret, code, AT)


@pytest.mark.integration
class TestEnrollment:
    """Test setup and enable."""

    async def test_setup_is_pending(self, mfa_service, make_user, db_session):
        # Arrange
        user = await make_user("ada@example.com")

        # Act
        result = await mfa_service.generate_mfa_secret(user.id, user.email)

        # Assert
        assert isinstance(result, Success)
        setup = result.value
        uri = urlparse(setup.provisioning_uri)
        assert uri.scheme == "otpauth"
        assert parse_qs(uri.query)["issuer"] == ["Gatekeeper Test"]
        assert parse_qs(uri.query)["secret"] == [setup.secret]
        assert len(setup.backup_codes) == 4
        assert all(
            len(c) == 8 and c.isalnum() and c.upper() == c for c in setup.backup_codes
        )
        assert not await mfa_service.user_requires_mfa(user.id)

        stored = (
            await db_session.execute(
                select(MfaSecretModel).where(MfaSecretModel.user_id == user.id)
            )
        ).scalar_one()
        assert setup.backup_codes[0] not in stored.backup_codes
        assert hash_token(setup.backup_codes[0]) in stored.backup_codes

    async def test_enable_with_valid_code(self, mfa_service, make_user):
        user = await make_user()

        await _enrolled(mfa_service, user)
        status = await mfa_service.get_user_mfa_status(user.id)

        assert await mfa_service.user_requires_mfa(user.id)
        assert status.is_enabled
        assert status.backup_codes_remaining == 4
        assert status.last_used_at is not None

    async def test_enable_rejects_wrong_code(self, mfa_service, make_user):
        user = await make_user()
        setup = (await mfa_service.generate_mfa_secret(user.id, user.email)).value
        wrong = pyotp.TOTP(setup.secret).at(datetime.now(UTC) - timedelta(minutes=5))

        result = await mfa_service.enable_mfa(user.id, wrong)

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.INVALID_MFA_CODE
        assert result.error.field == "code"
        assert not await mfa_service.user_requires_mfa(user.id)

    async def test_enable_without_setup(self, mfa_service, make_user):
        user = await make_user()

        result = await mfa_service.enable_mfa(user.id, "123456")

        assert result.error.code is ErrorCode.MFA_NOT_CONFIGURED

    async def test_enabled_user_cannot_restart_setup(self, mfa_service, make_user):
        user = await make_user()
        setup = await _enrolled(mfa_service, user)

        restart = await mfa_service.generate_mfa_secret(user.id, user.email)
        enable_again = await mfa_service.enable_mfa(
            user.id, pyotp.TOTP(setup.secret).now()
        )

        assert restart.error.code is ErrorCode.MFA_ALREADY_ENABLED
        assert enable_again.error.code is ErrorCode.MFA_ALREADY_ENABLED

    async def test_pending_setup_replaced(self, mfa_service, make_user):
        """Test restarting a pending setup invalidates the first secret."""
        user = await make_user()
        first = (await mfa_service.generate_mfa_secret(user.id, user.email)).value
        second = (await mfa_service.generate_mfa_secret(user.id, user.email)).value

        assert first.secret != second.secret
        assert not await mfa_service.verify_backup_code(user.id, first.backup_codes[0])
        assert isinstance(
            await mfa_service.enable_mfa(user.id, pyotp.TOTP(second.secret).now()),
            Success,
        )


@pytest.mark.integration
class TestBackupCodes:
    """Test backup code consumption."""

    async def test_code_works_once(self, mfa_service, make_user):
        user = await make_user()
        setup = await _enrolled(mfa_service, user)
        code = setup.backup_codes[0]

        first = await mfa_service.verify_backup_code(user.id, code)
        second = await mfa_service.verify_backup_code(user.id, code)

        assert first is True
        assert second is False
        status = await mfa_service.get_user_mfa_status(user.id)
        assert status.backup_codes_remaining == 3
        assert status.has_backup_codes

    async def test_match_is_case_insensitive(self, mfa_service, make_user):
        user = await make_user()
        setup = await _enrolled(mfa_service, user)

        assert await mfa_service.verify_backup_code(
            user.id, f"  {setup.backup_codes[1].lower()} "
        )

    async def test_unknown_code_rejected(self, mfa_service, make_user):
        user = await make_user()
        await _enrolled(mfa_service, user)

        assert not await mfa_service.verify_backup_code(user.id, "ZZZZZZZZ")
        assert not await mfa_service.verify_backup_code(user.id, "")

    async def test_all_codes_spent(self, mfa_service, make_user):
        user = await make_user()
        setup = await _enrolled(mfa_service, user)

        for code in setup.backup_codes:
            assert await mfa_service.verify_backup_code(user.id, code)

        status = await mfa_service.get_user_mfa_status(user.id)
        assert status.has_backup_codes is False
        assert status.backup_codes_remaining == 0

    async def test_regenerate_replaces_codes(self, mfa_service, make_user):
        user = await make_user()
        setup = await _enrolled(mfa_service, user)
        await mfa_service.verify_backup_code(user.id, setup.backup_codes[0])

        result = await mfa_service.regenerate_backup_codes(user.id)

        assert isinstance(result, Success)
        assert len(result.value) == 4
        assert not await mfa_service.verify_backup_code(user.id, setup.backup_codes[1])
        assert await mfa_service.verify_backup_code(user.id, result.value[0])

    async def test_regenerate_without_setup(self, mfa_service, make_user):
        user = await make_user()

        result = await mfa_service.regenerate_backup_codes(user.id)

        assert isinstance(result, Failure)
        assert result.error.code is ErrorCode.MFA_NOT_CONFIGURED


@pytest.mark.integration
class TestVerifyMfaCode:
    """Test the login-time second factor check."""

    async def test_totp_accepted(self, mfa_service, make_user):
        user = await make_user()
        setup = await _enrolled(mfa_service, user)

        assert await mfa_service.verify_mfa_code(
            user.id, pyotp.TOTP(setup.secret).now()
        )
        status = await mfa_service.get_user_mfa_status(user.id)
        assert status.backup_codes_remaining == 4

    async def test_backup_code_fallback(self, mfa_service, make_user):
        user = await make_user()
        setup = await _enrolled(mfa_service, user)

        assert await mfa_service.verify_mfa_code(user.id, setup.backup_codes[2])
        status = await mfa_service.get_user_mfa_status(user.id)
        assert status.backup_codes_remaining == 3

    async def test_wrong_code_rejected(self, mfa_service, make_user, logger):
        user = await make_user()
        await _enrolled(mfa_service, user)

        assert not await mfa_service.verify_mfa_code(user.id, "ABCDEFGH")
        assert logger.warning.call_args.args[0] == "mfa_code_rejected"

    async def test_pending_setup_not_accepted(self, mfa_service, make_user):
        """Test codes do nothing until enrollment is confirmed."""
        user = await make_user()
        setup = (await mfa_service.generate_mfa_secret(user.id, user.email)).value

        assert not await mfa_service.verify_mfa_code(
            user.id, pyotp.TOTP(setup.secret).now()
        )
        assert not await mfa_service.verify_mfa_code(user.id, setup.backup_codes[0])

    async def test_no_enrollment(self, mfa_service, make_user):
        user = await make_user()

        assert not await mfa_service.verify_mfa_code(user.id, "123456")
        assert not await mfa_service.user_requires_mfa(user.id)


@pytest.mark.integration
class TestDisableAndAudit:
    """Test disable and the audit trail."""

    async def test_disable_removes_enrollment(self, mfa_service, make_user):
        user = await make_user()
        await _enrolled(mfa_service, user)

        assert await mfa_service.disable_mfa(user.id) is True
        assert await mfa_service.disable_mfa(user.id) is False

        status = await mfa_service.get_user_mfa_status(user.id)
        assert status.is_enabled is False
        assert status.backup_codes_remaining == 0
        assert status.last_used_at is None

    async def test_events_recorded(self, mfa_service, make_user, db_session):
        # Arrange
        user = await make_user()
        setup = await _enrolled(mfa_service, user)

        # Act
        await mfa_service.verify_backup_code(user.id, setup.backup_codes[0])
        await mfa_service.regenerate_backup_codes(user.id)
        await mfa_service.disable_mfa(user.id)

        # Assert
        events = SecurityAuditRepository(db_session)
        enabled = await events.list_by_action(
            SecurityAction.MFA_ENABLED.value, user_id=user.id
        )
        used = await events.list_by_action(
            SecurityAction.MFA_BACKUP_CODE_USED.value, user_id=user.id
        )
        regenerated = await events.list_by_action(
            SecurityAction.MFA_BACKUP_CODES_REGENERATED.value, user_id=user.id
        )
        disabled = await events.list_by_action(
            SecurityAction.MFA_DISABLED.value, user_id=user.id
        )
        assert len(enabled) == len(regenerated) == len(disabled) == 1
        assert used[0].details == {"remaining": 3}
        assert used[0].resource == "mfa"
        assert setup.backup_codes[0] not in str(used[0].details)
