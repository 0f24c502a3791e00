"""Domain layer: enums and exceptions.

No dependencies on infrastructure. Used by application and infrastructure layers.
"""

from followgraph.domain.enums import FollowEventType, FollowStatus
from followgraph.domain.exceptions import (
    DuplicateFollowException,
    FollowGraphException,
    SqlNotConfiguredException,
    ValidationException,
)

__all__ = [
    "DuplicateFollowException",
    "FollowEventType",
    "FollowGraphException",
    "FollowStatus",
    "SqlNotConfiguredException",
    "ValidationException",
]
