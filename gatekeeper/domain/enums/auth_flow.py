"""Authentication flows and failure reasons."""

from enum import Enum


class AuthFlow(str, Enum):
    """How the caller is talking to us.

    UI: Browser navigation; failures redirect to the login page.
    API: Programmatic client; failures return JSON errors.
    """

    UI = "ui"
    API = "api"


class AuthFailureReason(str, Enum):
    """Why a security tier rejected a request (recorded in audit details)."""

    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    INSUFFICIENT_PERMISSION = "insufficient_permission"


class CredentialKind(str, Enum):
    """Primary credential that identified the caller."""

    SESSION = "session"
    JWT = "jwt"
    API_TOKEN = "api_token"
