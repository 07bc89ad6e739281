"""Named rate limit configurations.

Each name doubles as the ``endpoint`` component of the counter key, so the
same identifier is counted independently per configuration.

Usage:
    from gatekeeper.infrastructure.rate_limit.config import RATE_LIMITS, RateLimitName

    config = RATE_LIMITS[RateLimitName.LOGIN]
"""

from datetime import timedelta
from enum import Enum

from gatekeeper.domain.value_objects.rate_limit import RateLimitConfig


class RateLimitName(str, Enum):
    """Named endpoint classes with their own limits."""

    LOGIN = "login"
    REGISTER = "register"
    PASSWORD_RESET = "password_reset"
    EMAIL_VERIFICATION = "email_verification"
    API_GENERAL = "api_general"
    API_STRICT = "api_strict"


RATE_LIMITS: dict[RateLimitName, RateLimitConfig] = {
    RateLimitName.LOGIN: RateLimitConfig(
        window=timedelta(minutes=15),
        max_attempts=5,
        block_duration=timedelta(minutes=30),
    ),
    RateLimitName.REGISTER: RateLimitConfig(
        window=timedelta(hours=1),
        max_attempts=3,
        block_duration=timedelta(hours=1),
    ),
    RateLimitName.PASSWORD_RESET: RateLimitConfig(
        window=timedelta(hours=1),
        max_attempts=3,
        block_duration=timedelta(hours=1),
    ),
    RateLimitName.EMAIL_VERIFICATION: RateLimitConfig(
        window=timedelta(hours=1),
        max_attempts=5,
        block_duration=timedelta(minutes=30),
    ),
    RateLimitName.API_GENERAL: RateLimitConfig(
        window=timedelta(minutes=1),
        max_attempts=60,
        block_duration=timedelta(minutes=1),
    ),
    RateLimitName.API_STRICT: RateLimitConfig(
        window=timedelta(minutes=1),
        max_attempts=10,
        block_duration=timedelta(minutes=5),
    ),
}
