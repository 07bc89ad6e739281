"""API token scopes.

Scopes are capability strings of the form ``resource:action``. Two values are
wildcards: ``ALL`` (``*``) and ``ADMIN`` (``admin:*``); a token holding
either satisfies any scope requirement.
"""

from enum import Enum


class ApiScope(str, Enum):
    """Known API token scopes."""

    READ_PROFILE = "profile:read"
    WRITE_PROFILE = "profile:write"
    READ_USERS = "users:read"
    WRITE_USERS = "users:write"
    ADMIN = "admin:*"
    ALL = "*"


WILDCARD_SCOPES: frozenset[str] = frozenset({ApiScope.ALL.value, ApiScope.ADMIN.value})
