"""Unit tests for user agent parsing."""

import pytest

from gatekeeper.infrastructure.enrichers import parse_device_info

IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
WINDOWS_CHROME = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
GOOGLEBOT = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"


@pytest.mark.unit
class TestParseDeviceInfo:
    """Test device classification."""

    def test_phone(self):
        info = parse_device_info(IPHONE)

        assert info.device_type == "mobile"
        assert info.is_mobile
        assert info.os == "iOS"

    def test_tablet(self):
        info = parse_device_info(IPAD)

        assert info.device_type == "tablet"
        assert info.is_tablet

    def test_desktop(self):
        info = parse_device_info(WINDOWS_CHROME)

        assert info.device_type == "desktop"
        assert info.browser == "Chrome"
        assert info.os == "Windows"
        assert info.default_name == "desktop (Chrome on Windows)"

    def test_bot(self):
        assert parse_device_info(GOOGLEBOT).is_bot

    def test_empty_user_agent(self):
        info = parse_device_info("")

        assert info.device_type == "other"
        assert info.browser == "Unknown"
