"""Suspicious activity policy and report."""

from dataclasses import dataclass, field
from datetime import timedelta

MULTIPLE_LOCATIONS_MESSAGE = (
    "Multiple locations detected. Consider enabling MFA if not already enabled."
)
UNUSUAL_DEVICES_MESSAGE = (
    "New devices detected. Review and trust devices you recognize."
)
RECENT_FAILURES_MESSAGE = (
    "Recent failed login attempts detected. Change your password if suspicious."
)
ALL_CLEAR_MESSAGE = "No suspicious activity detected. Your account appears secure."


@dataclass(frozen=True, slots=True, kw_only=True)
class SuspiciousActivityPolicy:
    """Thresholds for suspicious activity heuristics.

    Attributes:
        event_limit: Most recent audit events inspected.
        window: Only events newer than ``now - window`` count.
        max_locations: Distinct IPs tolerated; more flags multiple locations.
        max_failed_logins: Failed logins tolerated; more flags recent failures.
    """

    event_limit: int = 100
    window: timedelta = timedelta(hours=24)
    max_locations: int = 3
    max_failed_logins: int = 2

    def __post_init__(self) -> None:
        if self.event_limit < 1:
            raise ValueError(f"event_limit must be >= 1, got {self.event_limit}")
        if self.window <= timedelta(0):
            raise ValueError(f"window must be positive, got {self.window}")


@dataclass(frozen=True, slots=True, kw_only=True)
class SuspiciousActivityReport:
    """Heuristic flags derived from recent audit events.

    Attributes:
        has_multiple_locations: More distinct IPs than the policy allows.
        has_unusual_devices: A fingerprint active in the window is untrusted.
        has_recent_failures: More failed logins than the policy allows.
        distinct_ip_count: Distinct IPs seen in the window.
        unusual_fingerprints: Untrusted fingerprints seen in the window.
        failed_login_count: Failed logins in the window.
        recommendations: Prioritized human-readable advice.
    """

    has_multiple_locations: bool
    has_unusual_devices: bool
    has_recent_failures: bool
    distinct_ip_count: int = 0
    unusual_fingerprints: list[str] = field(default_factory=list)
    failed_login_count: int = 0
    recommendations: list[str] = field(default_factory=list)

    @property
    def is_suspicious(self) -> bool:
        """Whether any heuristic fired."""
        return (
            self.has_multiple_locations
            or self.has_unusual_devices
            or self.has_recent_failures
        )
