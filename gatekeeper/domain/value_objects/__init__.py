"""Domain value objects package."""

from gatekeeper.domain.value_objects.device import DeviceInfo, RequestMetadata
from gatekeeper.domain.value_objects.rate_limit import (
    RateLimitConfig,
    RateLimitCounter,
    RateLimitResult,
)
from gatekeeper.domain.value_objects.suspicious_activity import (
    SuspiciousActivityPolicy,
    SuspiciousActivityReport,
)

__all__ = [
    "DeviceInfo",
    "RateLimitConfig",
    "RateLimitCounter",
    "RateLimitResult",
    "RequestMetadata",
    "SuspiciousActivityPolicy",
    "SuspiciousActivityReport",
]
