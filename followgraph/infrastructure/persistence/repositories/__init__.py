"""Repositories: session-bound data access returning application DTOs."""

from followgraph.infrastructure.persistence.repositories.base import BaseRepository
from followgraph.infrastructure.persistence.repositories.relationship_repo import (
    RelationshipRepository,
)
from followgraph.infrastructure.persistence.repositories.user_repo import (
    UserCounterRepository,
)

__all__ = [
    "BaseRepository",
    "RelationshipRepository",
    "UserCounterRepository",
]
