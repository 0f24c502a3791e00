"""Application DTOs: read-models and query criteria (no ORM imports)."""

from followgraph.application.dtos.follow_event import FollowEvent
from followgraph.application.dtos.query import (
    Condition,
    Operator,
    OrderBy,
    Paging,
    QueryCriteria,
)
from followgraph.application.dtos.relationship import (
    CursorPage,
    FollowOutcome,
    RelationshipResult,
)
from followgraph.application.dtos.user import UserResult

__all__ = [
    "Condition",
    "CursorPage",
    "FollowEvent",
    "FollowOutcome",
    "Operator",
    "OrderBy",
    "Paging",
    "QueryCriteria",
    "RelationshipResult",
    "UserResult",
]
