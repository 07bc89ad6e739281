"""Request enrichers (user agent parsing)."""

from gatekeeper.infrastructure.enrichers.device_parser import parse_device_info

__all__ = ["parse_device_info"]
