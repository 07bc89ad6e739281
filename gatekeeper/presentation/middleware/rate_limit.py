"""Rate limit enforcement at the HTTP boundary.

Two entry points over the same ``RateLimiter``:

- ``rate_limit(name)``: route dependency. Counts per ``user:<id>`` when the
  caller is authenticated, else per ``ip:<addr>``.
- ``RateLimitMiddleware``: path-prefix rule table applied before routing,
  counting per client IP.

Order of checks: an active block denies without counting; otherwise the
attempt is counted and denied when over the limit.

Responses:
    allowed   X-RateLimit-Limit / -Remaining / -Reset on the response
    denied    429 + the same headers + Retry-After, one rate_limit_exceeded
              audit event
    store or audit fault  503 (never treated as allowed or denied)

Usage:
    @router.post("/auth/login")
    async def login(_: RateLimitResult = Depends(rate_limit(RateLimitName.LOGIN))):
        ...

    app.add_middleware(RateLimitMiddleware)
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

from gatekeeper.core.container import (
    get_audit_service,
    get_database,
    get_logger,
    get_rate_limit_store,
    get_rate_limiter,
)
from gatekeeper.core.fingerprinting import extract_request_metadata
from gatekeeper.core.result import Failure, Success
from gatekeeper.domain.enums import SecurityAction
from gatekeeper.domain.errors import AuthenticationError
from gatekeeper.domain.protocols import LoggerProtocol, RateLimitStoreProtocol
from gatekeeper.domain.value_objects.rate_limit import RateLimitConfig, RateLimitResult
from gatekeeper.infrastructure.persistence.database import Database
from gatekeeper.infrastructure.rate_limit import RATE_LIMITS, RateLimitName
from gatekeeper.presentation.middleware.auth_dependencies import OptionalUser
from gatekeeper.services import RateLimiter, SecurityAuditService, get_client_identifier


class RateLimitUnavailable(Exception):
    """Store or audit fault while enforcing a limit."""


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitDecision:
    """Outcome of one enforcement pass."""

    result: RateLimitResult
    identifier: str
    endpoint: str


async def enforce_rate_limit(
    rate_limiter: RateLimiter,
    *,
    identifier: str,
    endpoint: str,
    config: RateLimitConfig,
) -> RateLimitDecision:
    """Block check, then counted check.

    Raises:
        RateLimitUnavailable: If the store fails.
    """
    match await rate_limiter.check_block(identifier, endpoint, config):
        case Failure():
            raise RateLimitUnavailable(endpoint)
        case Success(value=denial) if denial is not None:
            return RateLimitDecision(
                result=denial, identifier=identifier, endpoint=endpoint
            )
        case _:
            pass

    match await rate_limiter.check_rate_limit(identifier, endpoint, config):
        case Failure():
            raise RateLimitUnavailable(endpoint)
        case Success(value=result):
            return RateLimitDecision(
                result=result, identifier=identifier, endpoint=endpoint
            )


async def record_rate_limit_denial(
    audit: SecurityAuditService,
    decision: RateLimitDecision,
    *,
    request: Request,
    user_id: int | None,
) -> None:
    """Append the single audit event for a denial.

    Raises:
        RateLimitUnavailable: If the event cannot be written.
    """
    result = await audit.log_security_event(
        user_id=user_id,
        action=SecurityAction.RATE_LIMIT_EXCEEDED,
        resource="rate_limit",
        details={
            "endpoint": decision.endpoint,
            "identifier": decision.identifier,
            "attempts": decision.result.total_attempts,
            "limit": decision.result.limit,
            "path": request.url.path,
        },
        metadata=extract_request_metadata(request),
        success=False,
    )
    if isinstance(result, Failure):
        raise RateLimitUnavailable(decision.endpoint)


def _resolve_config(
    name: RateLimitName | str, config: RateLimitConfig | None
) -> tuple[str, RateLimitConfig]:
    endpoint = name.value if isinstance(name, RateLimitName) else name
    if config is not None:
        return endpoint, config
    return endpoint, RATE_LIMITS[RateLimitName(endpoint)]


def rate_limit(
    name: RateLimitName | str,
    config: RateLimitConfig | None = None,
) -> Callable[..., Awaitable[RateLimitResult]]:
    """Create a dependency enforcing a named limit.

    Args:
        name: Named configuration; also the counter's endpoint component.
        config: Explicit configuration (required for custom names).

    Raises:
        HTTPException 429: Over the limit or blocked.
        HTTPException 503: Store or audit fault.
    """
    endpoint, limit_config = _resolve_config(name, config)

    async def limiter(
        request: Request,
        response: Response,
        current_user: OptionalUser,
        rate_limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
        audit: Annotated[SecurityAuditService, Depends(get_audit_service)],
    ) -> RateLimitResult:
        user_id = current_user.user_id if current_user else None
        identifier = get_client_identifier(request, user_id)
        try:
            decision = await enforce_rate_limit(
                rate_limiter,
                identifier=identifier,
                endpoint=endpoint,
                config=limit_config,
            )
            if not decision.result.allowed:
                await record_rate_limit_denial(
                    audit, decision, request=request, user_id=user_id
                )
        except RateLimitUnavailable as e:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=AuthenticationError.RATE_LIMIT_UNAVAILABLE,
            ) from e

        headers = decision.result.to_headers(datetime.now(UTC))
        if not decision.result.allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=AuthenticationError.TOO_MANY_REQUESTS,
                headers=headers,
            )
        response.headers.update(headers)
        return decision.result

    return limiter


@dataclass(frozen=True, slots=True, kw_only=True)
class RateLimitRule:
    """Apply ``name`` to requests whose path starts with ``path_prefix``.

    Attributes:
        path_prefix: Path prefix to match.
        name: Named configuration (and counter endpoint).
        methods: Methods the rule applies to; empty means all.
    """

    path_prefix: str
    name: RateLimitName
    methods: frozenset[str] = field(default_factory=frozenset)

    def matches(self, method: str, path: str) -> bool:
        if self.methods and method.upper() not in self.methods:
            return False
        return path.startswith(self.path_prefix)


DEFAULT_RULES: tuple[RateLimitRule, ...] = (
    RateLimitRule(
        path_prefix="/auth/login", name=RateLimitName.LOGIN, methods=frozenset({"POST"})
    ),
    RateLimitRule(
        path_prefix="/auth/register",
        name=RateLimitName.REGISTER,
        methods=frozenset({"POST"}),
    ),
    RateLimitRule(
        path_prefix="/auth/password-reset",
        name=RateLimitName.PASSWORD_RESET,
        methods=frozenset({"POST"}),
    ),
    RateLimitRule(
        path_prefix="/auth/verify-email",
        name=RateLimitName.EMAIL_VERIFICATION,
    ),
    RateLimitRule(path_prefix="/api/", name=RateLimitName.API_GENERAL),
)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Starlette middleware applying the first matching rule per request.

    Store faults answer 503.

    Args:
        app: The ASGI application to wrap.
        rules: Rule table; first match wins.
        store: Counter store (defaults to the container's).
        database: Database for audit events (defaults to the container's).
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        rules: Sequence[RateLimitRule] = DEFAULT_RULES,
        store: RateLimitStoreProtocol | None = None,
        database: Database | None = None,
    ) -> None:
        super().__init__(app)
        self._rules = tuple(rules)
        self._store = store
        self._database = database
        self._rate_limiter: RateLimiter | None = None

    def _get_logger(self) -> LoggerProtocol:
        return get_logger()

    def _get_rate_limiter(self) -> RateLimiter:
        if self._rate_limiter is None:
            store = self._store or get_rate_limit_store()
            self._rate_limiter = RateLimiter(store, self._get_logger())
        return self._rate_limiter

    def _get_database(self) -> Database:
        return self._database or get_database()

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        rule = next(
            (r for r in self._rules if r.matches(request.method, request.url.path)),
            None,
        )
        if rule is None:
            return await call_next(request)

        endpoint, config = _resolve_config(rule.name, None)
        identifier = get_client_identifier(request)
        try:
            decision = await enforce_rate_limit(
                self._get_rate_limiter(),
                identifier=identifier,
                endpoint=endpoint,
                config=config,
            )
            if not decision.result.allowed:
                async with self._get_database().get_session() as session:
                    audit = SecurityAuditService(session, self._get_logger())
                    await record_rate_limit_denial(
                        audit, decision, request=request, user_id=None
                    )
        except RateLimitUnavailable:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"detail": AuthenticationError.RATE_LIMIT_UNAVAILABLE},
            )

        headers = decision.result.to_headers(datetime.now(UTC))
        if not decision.result.allowed:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": AuthenticationError.TOO_MANY_REQUESTS,
                    "retry_after": int(headers["Retry-After"]),
                },
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
