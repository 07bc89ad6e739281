"""Primary credential extraction and identity resolution.

Credentials, in precedence order:
    Authorization: Bearer <jwt>        three dot-separated segments
    Authorization: Bearer <api token>  anything else
    <session cookie>                   database session id

A JWT identifies the user named by its ``sub`` claim, which must exist.
Malformed, expired and unknown credentials all resolve to None.

Usage:
    @router.get("/maybe-me")
    async def maybe_me(current_user: OptionalUser):
        ...

Routes that require an identity use the security tiers
(``require_security``), which also audit denials.
"""

from dataclasses import dataclass, field
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import HTTPConnection, Request

from gatekeeper.core.container import (
    get_api_token_service,
    get_db_session,
    get_jwt_engine,
    get_session_service,
    get_settings,
)
from gatekeeper.domain.entities.user import User
from gatekeeper.domain.enums import CredentialKind, UserRole
from gatekeeper.infrastructure.persistence.repositories import UserRepository
from gatekeeper.infrastructure.security import JWTEngine
from gatekeeper.services import ApiTokenService, SessionService


@dataclass(frozen=True, slots=True, kw_only=True)
class PrimaryCredential:
    """Credential presented by the caller (value never logged)."""

    kind: CredentialKind
    value: str = field(repr=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class CurrentUser:
    """Authenticated caller.

    Attributes:
        user: Resolved user.
        credential_kind: How the caller authenticated.
        scopes: Token scopes (empty for sessions).
        session_id: Session id when authenticated by cookie.
        token_id: API token row id or JWT ``tokenId`` claim.
    """

    user: User
    credential_kind: CredentialKind
    scopes: list[str] = field(default_factory=list)
    session_id: str | None = field(default=None, repr=False)
    token_id: int | str | None = None

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def email(self) -> str:
        return self.user.email

    @property
    def role(self) -> UserRole:
        return self.user.role


def extract_primary_credential(
    connection: HTTPConnection, cookie_name: str
) -> PrimaryCredential | None:
    """The caller's primary credential, or None when none was presented."""
    scheme, _, value = connection.headers.get("authorization", "").partition(" ")
    token = value.strip()
    if scheme.lower() == "bearer" and token:
        kind = CredentialKind.JWT if token.count(".") == 2 else CredentialKind.API_TOKEN
        return PrimaryCredential(kind=kind, value=token)

    session_id = connection.cookies.get(cookie_name)
    if session_id:
        return PrimaryCredential(kind=CredentialKind.SESSION, value=session_id)
    return None


class IdentityResolver:
    """Turn a primary credential into a ``CurrentUser``.

    Args:
        session: Request database session.
        jwt_engine: JWT verifier.
        api_tokens: API token service.
        sessions: Session service.
    """

    def __init__(
        self,
        *,
        session: AsyncSession,
        jwt_engine: JWTEngine,
        api_tokens: ApiTokenService,
        sessions: SessionService,
    ) -> None:
        self._users = UserRepository(session)
        self._jwt_engine = jwt_engine
        self._api_tokens = api_tokens
        self._sessions = sessions

    async def resolve(self, credential: PrimaryCredential) -> CurrentUser | None:
        match credential.kind:
            case CredentialKind.JWT:
                return await self._resolve_jwt(credential.value)
            case CredentialKind.API_TOKEN:
                verified = await self._api_tokens.verify_api_token(credential.value)
                if verified is None:
                    return None
                return CurrentUser(
                    user=verified.user,
                    credential_kind=CredentialKind.API_TOKEN,
                    scopes=verified.scopes,
                    token_id=verified.token_id,
                )
            case CredentialKind.SESSION:
                found = await self._sessions.validate_session(credential.value)
                if found is None:
                    return None
                login_session, user = found
                return CurrentUser(
                    user=user,
                    credential_kind=CredentialKind.SESSION,
                    session_id=login_session.id,
                )

    async def _resolve_jwt(self, token: str) -> CurrentUser | None:
        payload = self._jwt_engine.verify_jwt(token)
        if payload is None:
            return None
        try:
            user_id = int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            return None

        user = await self._users.find_by_id(user_id)
        if user is None:
            return None

        scopes = payload.get("scopes")
        return CurrentUser(
            user=user,
            credential_kind=CredentialKind.JWT,
            scopes=[str(s) for s in scopes] if isinstance(scopes, list) else [],
            token_id=payload.get("tokenId"),
        )


def get_identity_resolver(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    jwt_engine: Annotated[JWTEngine, Depends(get_jwt_engine)],
    api_tokens: Annotated[ApiTokenService, Depends(get_api_token_service)],
    sessions: Annotated[SessionService, Depends(get_session_service)],
) -> IdentityResolver:
    return IdentityResolver(
        session=session,
        jwt_engine=jwt_engine,
        api_tokens=api_tokens,
        sessions=sessions,
    )


async def get_current_user_optional(
    request: Request,
    resolver: Annotated[IdentityResolver, Depends(get_identity_resolver)],
) -> CurrentUser | None:
    """Current user if a valid credential was presented, None otherwise.

    Never denies, so it writes no audit event.
    """
    credential = extract_primary_credential(
        request, get_settings().session_cookie_name
    )
    if credential is None:
        return None
    return await resolver.resolve(credential)


OptionalUser = Annotated[CurrentUser | None, Depends(get_current_user_optional)]
