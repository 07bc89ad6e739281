"""Shared test helpers."""

import base64

TEST_PASSWORD = "SecurePass123!"


def basic_header(email: str, password: str) -> str:
    """``Authorization`` value for HTTP Basic credentials."""
    raw = f"{email}:{password}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")
