"""Security audit event entity."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True, kw_only=True)
class SecurityEvent:
    """Immutable record of a security-relevant action.

    Attributes:
        id: Row id.
        user_id: Acting user, None for pre-authentication events.
        action: SecurityAction value.
        resource: Affected resource kind (session, device, api_token, route).
        ip_address: Client address or "unknown".
        user_agent: Client user agent.
        device_fingerprint: Header fingerprint of the client.
        details: Validated JSON object with action-specific context.
        success: Whether the action succeeded.
        created_at: When the event was appended.
    """

    id: int
    user_id: int | None
    action: str
    resource: str | None
    ip_address: str | None
    user_agent: str | None
    device_fingerprint: str | None
    details: dict[str, Any] = field(default_factory=dict)
    success: bool = True
    created_at: datetime
