"""Route security tiers.

Tiers are ordered: each level requires everything the one below requires.

    STANDARD: session cookie or bearer credential identifies the caller
    HIGH:     STANDARD + HTTP Basic secondary factor in the same request
    CRITICAL: HIGH + every explicitly required permission
"""

from enum import Enum


class SecurityLevel(str, Enum):
    """Route security tier."""

    STANDARD = "standard"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Position in the tier ordering (STANDARD=0)."""
        return _RANKS[self]

    def requires_secondary_factor(self) -> bool:
        """Whether the tier demands the HTTP Basic factor."""
        return self.rank >= _RANKS[SecurityLevel.HIGH]

    def requires_permissions(self) -> bool:
        """Whether the tier enforces the required permission list."""
        return self is SecurityLevel.CRITICAL


_RANKS: dict[SecurityLevel, int] = {
    SecurityLevel.STANDARD: 0,
    SecurityLevel.HIGH: 1,
    SecurityLevel.CRITICAL: 2,
}
