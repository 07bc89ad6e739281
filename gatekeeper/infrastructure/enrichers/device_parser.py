"""Device description parsing using the user-agents library.

Fail-open: an unparseable user agent yields an "other"/"Unknown" description
rather than an error, since the description is informational only.
"""

import structlog
from user_agents import parse as parse_user_agent  # type: ignore[import-untyped]
from user_agents.parsers import UserAgent  # type: ignore[import-untyped]

from gatekeeper.domain.value_objects.device import DeviceInfo

logger = structlog.get_logger(__name__)

UNKNOWN = "Unknown"


def parse_device_info(user_agent: str) -> DeviceInfo:
    """Describe the device behind a user agent string.

    Returns:
        DeviceInfo with device_type one of mobile, tablet, desktop, other.

    Example:
        >>> info = parse_device_info(
        ...     "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) "
        ...     "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 "
        ...     "Mobile/15E148 Safari/604.1"
        ... )
        >>> info.device_type
        'mobile'
    """
    if not user_agent:
        return DeviceInfo(device_type="other", os=UNKNOWN, browser=UNKNOWN)

    try:
        ua: UserAgent = parse_user_agent(user_agent)
    except Exception as e:
        logger.warning(
            "Failed to parse user agent",
            user_agent=user_agent[:100],
            error=str(e),
        )
        return DeviceInfo(device_type="other", os=UNKNOWN, browser=UNKNOWN)

    return DeviceInfo(
        device_type=_determine_device_type(ua),
        os=ua.os.family or UNKNOWN,
        browser=ua.browser.family or UNKNOWN,
        is_mobile=bool(ua.is_mobile),
        is_tablet=bool(ua.is_tablet),
        is_bot=bool(ua.is_bot),
    )


def _determine_device_type(ua: UserAgent) -> str:
    if ua.is_mobile:
        return "mobile"
    if ua.is_tablet:
        return "tablet"
    if ua.is_pc:
        return "desktop"
    return "other"
