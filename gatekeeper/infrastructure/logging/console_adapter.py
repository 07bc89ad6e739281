"""structlog adapter behind LoggerProtocol.

Renders to stdout: colored console lines in development, one JSON object
per event everywhere else. Credential material never reaches the output;
``redact_credentials`` runs before rendering.

Structural subtyping only; ConsoleAdapter does not inherit LoggerProtocol.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

# Keys whose values are replaced outright.
SECRET_KEYS = frozenset(
    {"password", "token", "raw_token", "api_token", "jwt", "authorization", "secret"}
)
# Keys whose values are cut to a short prefix (still useful for correlation).
PREFIX_KEYS = frozenset({"session_id", "device_fingerprint", "fingerprint"})
PREFIX_LENGTH = 8
REDACTED = "[redacted]"


def redact_credentials(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """structlog processor masking credential values in the event."""
    for key in list(event_dict):
        lowered = key.lower()
        if lowered in SECRET_KEYS:
            event_dict[key] = REDACTED
        elif lowered in PREFIX_KEYS and isinstance(event_dict[key], str):
            event_dict[key] = event_dict[key][:PREFIX_LENGTH]
    return event_dict


class ConsoleAdapter:
    """Structured stdout logger for the auth subsystem.

    Args:
        use_json: JSON lines when True, console renderer when False.
        level: Minimum level name; unknown names fall back to INFO.
    """

    def __init__(self, *, use_json: bool = False, level: str = "INFO") -> None:
        renderer: structlog.types.Processor = (
            structlog.processors.JSONRenderer()
            if use_json
            else structlog.dev.ConsoleRenderer(colors=True)
        )
        min_level = logging.getLevelName(level.upper())
        if not isinstance(min_level, int):
            min_level = logging.INFO

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                redact_credentials,
                renderer,
            ],
            wrapper_class=structlog.make_filtering_bound_logger(min_level),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
            cache_logger_on_first_use=True,
        )
        self._logger = structlog.get_logger("gatekeeper")

    def debug(self, message: str, /, **context: Any) -> None:
        self._logger.debug(message, **context)

    def info(self, message: str, /, **context: Any) -> None:
        self._logger.info(message, **context)

    def warning(self, message: str, /, **context: Any) -> None:
        self._logger.warning(message, **context)

    def error(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log at ERROR; ``error`` contributes its type and message."""
        self._logger.error(message, **_with_error(context, error))

    def critical(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        self._logger.critical(message, **_with_error(context, error))

    def bind(self, **context: Any) -> ConsoleAdapter:
        """New adapter carrying ``context`` on every event."""
        bound = ConsoleAdapter.__new__(ConsoleAdapter)
        bound._logger = self._logger.bind(**context)
        return bound


def _with_error(context: dict[str, Any], error: Exception | None) -> dict[str, Any]:
    if error is not None:
        context["error_type"] = type(error).__name__
        context["error_message"] = str(error)
    return context
