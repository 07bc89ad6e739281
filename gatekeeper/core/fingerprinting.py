"""Device fingerprinting and client identification from request headers.

Fingerprint Components:
- User-Agent header
- Accept-Language header
- Accept-Encoding header

Security:
- SHA256 hash (64 hex characters), not reversible
- Heuristic identity only: same headers give the same fingerprint, distinct
  devices rarely collide, uniqueness is not guaranteed
- Logs only carry a fingerprint prefix

Client IP resolution order:
    CF-Connecting-IP -> X-Forwarded-For (first hop) -> X-Real-IP
    -> socket peer -> "unknown"
"""

import hashlib

import structlog
from starlette.requests import HTTPConnection

from gatekeeper.domain.value_objects.device import RequestMetadata

logger = structlog.get_logger(__name__)

UNKNOWN_IP = "unknown"


def generate_device_fingerprint(
    user_agent: str,
    accept_language: str | None = None,
    accept_encoding: str | None = None,
) -> str:
    """SHA256 hex of ``user_agent|accept_language|accept_encoding``.

    Examples:
        >>> fp = generate_device_fingerprint("Mozilla/5.0", "en-US", "gzip")
        >>> len(fp)
        64
        >>> fp == generate_device_fingerprint("Mozilla/5.0", "en-US", "gzip")
        True
    """
    components = [user_agent or "", accept_language or "", accept_encoding or ""]
    return hashlib.sha256("|".join(components).encode("utf-8")).hexdigest()


def get_client_ip(connection: HTTPConnection) -> str:
    """Resolve the client IP behind CDN and proxy headers."""
    headers = connection.headers

    cf_ip = headers.get("cf-connecting-ip")
    if cf_ip:
        return cf_ip.strip()

    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if connection.client and connection.client.host:
        return connection.client.host

    return UNKNOWN_IP


def extract_request_metadata(connection: HTTPConnection) -> RequestMetadata:
    """Collect IP, user agent and fingerprint for audit and device tracking."""
    user_agent = connection.headers.get("user-agent", "")
    accept_language = connection.headers.get("accept-language", "")
    accept_encoding = connection.headers.get("accept-encoding", "")
    fingerprint = generate_device_fingerprint(
        user_agent, accept_language, accept_encoding
    )

    logger.debug("device_fingerprint_generated", fingerprint_prefix=fingerprint[:8])

    return RequestMetadata(
        ip_address=get_client_ip(connection),
        user_agent=user_agent,
        accept_language=accept_language,
        accept_encoding=accept_encoding,
        device_fingerprint=fingerprint,
    )
