"""Persistence models: ORM entities and mixins."""

from followgraph.infrastructure.persistence.models.mixins import (
    BigIntIdMixin,
    TimestampMixin,
)
from followgraph.infrastructure.persistence.models.user import User
from followgraph.infrastructure.persistence.models.user_follow import UserFollow

__all__ = [
    "User",
    "UserFollow",
    "BigIntIdMixin",
    "TimestampMixin",
]
