"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from followgraph.infrastructure.
"""

from followgraph.application.interfaces.repositories import (
    IRelationshipRepository,
    IUserCounterRepository,
)
from followgraph.application.interfaces.services import (
    IFollowEventPublisher,
    IUserCache,
)

__all__ = [
    "IFollowEventPublisher",
    "IRelationshipRepository",
    "IUserCache",
    "IUserCounterRepository",
]
