"""Request classification helpers."""

from starlette.requests import HTTPConnection

from gatekeeper.domain.enums import AuthFlow

_PROGRAMMATIC_AGENTS = ("curl", "wget", "Postman", "HTTPie", "axios", "fetch")


def detect_auth_flow(connection: HTTPConnection) -> AuthFlow:
    """Classify the caller as a browser (UI) or a programmatic client (API).

    API indicators, in order: a bearer Authorization header, a JSON request
    body, an Accept header asking for JSON but not HTML, or a user agent that
    is a known HTTP tool or does not claim to be Mozilla-compatible.
    """
    headers = connection.headers

    if headers.get("authorization", "").startswith("Bearer "):
        return AuthFlow.API

    if "application/json" in headers.get("content-type", ""):
        return AuthFlow.API

    accept = headers.get("accept", "")
    if "application/json" in accept and "text/html" not in accept:
        return AuthFlow.API

    user_agent = headers.get("user-agent")
    if user_agent and (
        any(agent in user_agent for agent in _PROGRAMMATIC_AGENTS)
        or "Mozilla" not in user_agent
    ):
        return AuthFlow.API

    return AuthFlow.UI
