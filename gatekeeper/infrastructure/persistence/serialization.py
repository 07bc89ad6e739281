"""Typed serializers for JSON text columns.

``api_tokens.scopes``, ``mfa_secrets.backup_codes`` and
``security_audit_logs.details`` are stored as JSON text. Repositories never
call ``json.loads``/``json.dumps`` on them directly; they go through these
functions, which validate the shape with pydantic ``TypeAdapter``s in both
directions.

A stored value that fails validation raises ``pydantic.ValidationError``:
corrupted rows are a store fault, not a silent empty list.
"""

from typing import Annotated, Any

from pydantic import JsonValue, StringConstraints, TypeAdapter

ScopeName = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True,
        pattern=r"^(\*|[a-z][a-z_]*:(\*|[a-z][a-z_]*))$",
    ),
]

CodeHash = Annotated[str, StringConstraints(pattern=r"^[0-9a-f]{64}$")]

_scopes_adapter: TypeAdapter[list[ScopeName]] = TypeAdapter(list[ScopeName])
_code_hashes_adapter: TypeAdapter[list[CodeHash]] = TypeAdapter(list[CodeHash])
_details_adapter: TypeAdapter[dict[str, JsonValue]] = TypeAdapter(
    dict[str, JsonValue]
)


def validate_scopes(scopes: list[str]) -> list[str]:
    """Validate and de-duplicate scopes, preserving order.

    Raises:
        pydantic.ValidationError: If any scope is malformed.
    """
    validated = _scopes_adapter.validate_python(scopes)
    return list(dict.fromkeys(validated))


def dump_scopes(scopes: list[str]) -> str:
    """Serialize a scope list to JSON text.

    Raises:
        pydantic.ValidationError: If any scope is malformed.
    """
    return _scopes_adapter.dump_json(validate_scopes(scopes)).decode("utf-8")


def load_scopes(raw: str) -> list[str]:
    """Parse a stored scope list.

    Raises:
        pydantic.ValidationError: If the stored text is not a list of scopes.
    """
    return _scopes_adapter.validate_json(raw)


def dump_details(details: dict[str, Any] | None) -> str:
    """Serialize audit details to JSON text.

    Raises:
        pydantic.ValidationError: If details hold non-JSON values.
    """
    validated = _details_adapter.validate_python(details or {})
    return _details_adapter.dump_json(validated).decode("utf-8")


def load_details(raw: str | None) -> dict[str, Any]:
    """Parse stored audit details.

    Raises:
        pydantic.ValidationError: If the stored text is not a JSON object.
    """
    if not raw:
        return {}
    return _details_adapter.validate_json(raw)


def dump_backup_codes(code_hashes: list[str]) -> str:
    """Serialize backup code hashes to JSON text.

    Raises:
        pydantic.ValidationError: If an entry is not a SHA-256 hex digest.
    """
    validated = _code_hashes_adapter.validate_python(code_hashes)
    return _code_hashes_adapter.dump_json(validated).decode("utf-8")


def load_backup_codes(raw: str) -> list[str]:
    """Parse stored backup code hashes."""
    return _code_hashes_adapter.validate_json(raw)
