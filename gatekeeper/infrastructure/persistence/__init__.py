"""Database persistence infrastructure.

- Base model and UTC timestamp type
- Database connection and session management
- Typed JSON column serializers
- Repository implementations
"""

from gatekeeper.infrastructure.persistence.base import BaseModel
from gatekeeper.infrastructure.persistence.database import Database

__all__ = [
    "BaseModel",
    "Database",
]
