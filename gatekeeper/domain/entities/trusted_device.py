"""Trusted device entity."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class TrustedDevice:
    """A device seen for a user, identified by its header fingerprint.

    Created untrusted on first sight unless trust was requested; updated on
    every later sight.

    Attributes:
        id: Device row id.
        user_id: Owning user.
        fingerprint: SHA-256 hex of user-agent, accept-language, accept-encoding.
        device_name: Display name ("desktop (Chrome on Mac OS X)").
        device_type: mobile, tablet, desktop or other.
        browser: Browser family.
        os: Operating system family.
        ip_address: Address of the most recent sight.
        user_agent: Raw user agent of the most recent sight.
        is_trusted: Whether the owner trusts the device.
        last_seen_at: Most recent sight.
        created_at: First sight.
    """

    id: int
    user_id: int
    fingerprint: str
    device_name: str
    device_type: str
    browser: str | None
    os: str | None
    ip_address: str | None
    user_agent: str | None
    is_trusted: bool
    last_seen_at: datetime
    created_at: datetime
