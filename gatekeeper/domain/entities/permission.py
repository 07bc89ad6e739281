"""Permission entity."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, kw_only=True)
class Permission:
    """A named capability of the form ``resource.action``.

    Attributes:
        id: Row id (0 for catalog entries not yet persisted).
        name: Unique name, e.g. ``profile.read``.
        resource: Resource part of the name.
        action: Action part of the name.
        description: Human description.
    """

    id: int
    name: str
    resource: str
    action: str
    description: str | None = None

    @staticmethod
    def name_for(resource: str, action: str) -> str:
        """Conventional permission name for a resource/action pair."""
        return f"{resource}.{action}"
