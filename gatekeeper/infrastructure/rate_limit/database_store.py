"""Database-backed rate limit store.

Every attempt is ONE ``INSERT ... ON CONFLICT (identifier, endpoint) DO
UPDATE ... RETURNING`` statement. The database serializes concurrent upserts
on the unique key, so the read of the previous counter and the write of the
new one cannot interleave between two requests. An elapsed window is reset
inside the same statement with a ``CASE`` on ``window_start``.

Supported dialects: PostgreSQL and SQLite (both implement ``ON CONFLICT``).
"""

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import case, delete, literal, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from gatekeeper.core.enums import ErrorCode
from gatekeeper.core.result import Failure, Result, Success
from gatekeeper.domain.errors import RateLimitError
from gatekeeper.domain.value_objects.rate_limit import RateLimitCounter
from gatekeeper.infrastructure.persistence.base import UTCDateTime
from gatekeeper.infrastructure.persistence.database import Database
from gatekeeper.infrastructure.persistence.models.rate_limit import (
    RateLimitRecordModel,
)

_table = RateLimitRecordModel.__table__


class DatabaseRateLimitStore:
    """Durable rate limit counters in ``rate_limit_records``.

    Opens its own short session per operation so counters commit
    independently of the request's unit of work.

    Args:
        database: Database providing sessions.
    """

    def __init__(self, database: Database) -> None:
        self._database = database
        self._insert = (
            postgresql.insert
            if database.engine.dialect.name == "postgresql"
            else sqlite.insert
        )

    async def increment(
        self,
        *,
        identifier: str,
        endpoint: str,
        window: timedelta,
        now: datetime,
    ) -> Result[RateLimitCounter, RateLimitError]:
        """Count one attempt with a single atomic upsert."""
        now_value = literal(now, type_=UTCDateTime())
        window_elapsed = _table.c.window_start <= now - window

        stmt: Any = self._insert(_table).values(
            identifier=identifier,
            endpoint=endpoint,
            attempts=1,
            window_start=now,
            last_attempt_at=now,
            created_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[_table.c.identifier, _table.c.endpoint],
            set_={
                "attempts": case(
                    (window_elapsed, 1),
                    else_=_table.c.attempts + 1,
                ),
                "window_start": case(
                    (window_elapsed, now_value),
                    else_=_table.c.window_start,
                ),
                "last_attempt_at": now_value,
            },
        ).returning(
            _table.c.attempts,
            _table.c.window_start,
            _table.c.last_attempt_at,
            _table.c.blocked_until,
        )

        try:
            async with self._database.get_session() as session:
                result = await session.execute(stmt)
                row = result.one()
        except SQLAlchemyError as e:
            return Failure(
                error=_store_error(
                    ErrorCode.RATE_LIMIT_CHECK_FAILED,
                    "Failed to count rate limit attempt",
                    identifier,
                    endpoint,
                    e,
                )
            )

        return Success(
            value=RateLimitCounter(
                attempts=row.attempts,
                window_start=row.window_start,
                last_attempt_at=row.last_attempt_at,
                blocked_until=row.blocked_until,
            )
        )

    async def get(
        self,
        *,
        identifier: str,
        endpoint: str,
    ) -> Result[RateLimitCounter | None, RateLimitError]:
        """Read the counter without counting an attempt."""
        stmt = select(RateLimitRecordModel).where(
            RateLimitRecordModel.identifier == identifier,
            RateLimitRecordModel.endpoint == endpoint,
        )
        try:
            async with self._database.get_session() as session:
                result = await session.execute(stmt)
                record = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            return Failure(
                error=_store_error(
                    ErrorCode.RATE_LIMIT_CHECK_FAILED,
                    "Failed to read rate limit counter",
                    identifier,
                    endpoint,
                    e,
                )
            )

        if record is None:
            return Success(value=None)
        return Success(
            value=RateLimitCounter(
                attempts=record.attempts,
                window_start=record.window_start,
                last_attempt_at=record.last_attempt_at,
                blocked_until=record.blocked_until,
            )
        )

    async def block(
        self,
        *,
        identifier: str,
        endpoint: str,
        until: datetime,
        now: datetime,
    ) -> Result[None, RateLimitError]:
        """Set ``blocked_until``, creating the row when needed."""
        stmt: Any = self._insert(_table).values(
            identifier=identifier,
            endpoint=endpoint,
            attempts=0,
            window_start=now,
            last_attempt_at=now,
            blocked_until=until,
            created_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[_table.c.identifier, _table.c.endpoint],
            set_={"blocked_until": literal(until, type_=UTCDateTime())},
        )
        try:
            async with self._database.get_session() as session:
                await session.execute(stmt)
        except SQLAlchemyError as e:
            return Failure(
                error=_store_error(
                    ErrorCode.RATE_LIMIT_BLOCK_FAILED,
                    "Failed to block identifier",
                    identifier,
                    endpoint,
                    e,
                )
            )
        return Success(value=None)

    async def reset(
        self,
        *,
        identifier: str,
        endpoint: str,
    ) -> Result[None, RateLimitError]:
        """Delete the counter row."""
        stmt = delete(RateLimitRecordModel).where(
            RateLimitRecordModel.identifier == identifier,
            RateLimitRecordModel.endpoint == endpoint,
        )
        try:
            async with self._database.get_session() as session:
                await session.execute(stmt)
        except SQLAlchemyError as e:
            return Failure(
                error=_store_error(
                    ErrorCode.RATE_LIMIT_RESET_FAILED,
                    "Failed to reset rate limit",
                    identifier,
                    endpoint,
                    e,
                )
            )
        return Success(value=None)

    async def cleanup(self, *, older_than: datetime) -> Result[int, RateLimitError]:
        """Delete rows idle since before ``older_than`` and not blocked past it."""
        stmt = delete(RateLimitRecordModel).where(
            RateLimitRecordModel.last_attempt_at < older_than,
            or_(
                RateLimitRecordModel.blocked_until.is_(None),
                RateLimitRecordModel.blocked_until < older_than,
            ),
        )
        try:
            async with self._database.get_session() as session:
                result = await session.execute(stmt)
                deleted = result.rowcount or 0
        except SQLAlchemyError as e:
            return Failure(
                error=RateLimitError(
                    code=ErrorCode.RATE_LIMIT_RESET_FAILED,
                    message=f"Failed to clean up rate limit records: {e}",
                    details={"error_type": type(e).__name__},
                )
            )
        return Success(value=deleted)


def _store_error(
    code: ErrorCode,
    message: str,
    identifier: str,
    endpoint: str,
    error: Exception,
) -> RateLimitError:
    return RateLimitError(
        code=code,
        message=f"{message}: {error}",
        details={
            "identifier": identifier,
            "endpoint": endpoint,
            "error_type": type(error).__name__,
        },
    )
