"""Device and request metadata value objects."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, kw_only=True)
class DeviceInfo:
    """Parsed description of a user agent.

    Attributes:
        device_type: mobile, tablet, desktop or other.
        os: Operating system family.
        browser: Browser family.
        is_mobile: Phone-class device.
        is_tablet: Tablet-class device.
        is_bot: Crawler or automated client.
    """

    device_type: str
    os: str
    browser: str
    is_mobile: bool = False
    is_tablet: bool = False
    is_bot: bool = False

    @property
    def default_name(self) -> str:
        """Display name used when the owner gives none."""
        return f"{self.device_type} ({self.browser} on {self.os})"


@dataclass(frozen=True, slots=True, kw_only=True)
class RequestMetadata:
    """Security-relevant facts extracted from one inbound request.

    Attributes:
        ip_address: Client IP (CF-Connecting-IP, X-Forwarded-For, X-Real-IP)
            or "unknown".
        user_agent: User-Agent header.
        accept_language: Accept-Language header.
        accept_encoding: Accept-Encoding header.
        device_fingerprint: SHA-256 hex fingerprint of the three headers.
    """

    ip_address: str = "unknown"
    user_agent: str = ""
    accept_language: str = ""
    accept_encoding: str = ""
    device_fingerprint: str | None = None
