"""Domain layer: entities, enums, value objects, protocols and policies."""
