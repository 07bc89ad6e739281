"""Domain protocols (ports)."""

from gatekeeper.domain.protocols.logger_protocol import LoggerProtocol
from gatekeeper.domain.protocols.password_hashing_protocol import (
    PasswordHashingProtocol,
)
from gatekeeper.domain.protocols.rate_limit_store_protocol import (
    RateLimitStoreProtocol,
)

__all__ = [
    "LoggerProtocol",
    "PasswordHashingProtocol",
    "RateLimitStoreProtocol",
]
