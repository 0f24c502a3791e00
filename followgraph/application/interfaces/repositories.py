"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
Implementations are bound to one session; every call participates in the
transaction that session has open.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from followgraph.application.dtos.query import Paging, QueryCriteria
    from followgraph.application.dtos.relationship import RelationshipResult
    from followgraph.application.dtos.user import UserResult
    from followgraph.domain.enums import FollowStatus


# Relationship repository interface
class IRelationshipRepository(Protocol):
    """Protocol for the follow edge store (CRUD only, no business rules)."""

    async def get_by_id(self, relationship_id: int) -> RelationshipResult | None:
        """Return edge by surrogate id."""

    async def take(self, subject_id: int, target_id: int) -> RelationshipResult | None:
        """Return the subject -> target edge, or None."""

    async def find(self, criteria: QueryCriteria) -> list[RelationshipResult]:
        """Return edges matching criteria, in criteria order."""

    async def find_one(self, criteria: QueryCriteria) -> RelationshipResult | None:
        """Return the first edge matching criteria, or None."""

    async def find_page(
        self, criteria: QueryCriteria
    ) -> tuple[list[RelationshipResult], Paging]:
        """Return one offset page of edges plus paging metadata."""

    async def count(self, criteria: QueryCriteria) -> int:
        """Return number of edges matching criteria (ordering/paging ignored)."""

    async def create(
        self,
        subject_id: int,
        target_id: int,
        status: FollowStatus,
        created_at: int,
    ) -> RelationshipResult:
        """Insert an edge. A duplicate pair raises DuplicateFollowException."""

    async def delete_pair(self, subject_id: int, target_id: int) -> bool:
        """Delete the subject -> target edge; return True if a row was removed."""

    async def update_status(
        self, subject_id: int, target_id: int, status: FollowStatus
    ) -> bool:
        """Set status on the subject -> target edge; return True if a row changed."""

    async def updates(self, relationship_id: int, columns: dict[str, Any]) -> bool:
        """Update columns on the edge with this id; return True if a row changed."""

    async def update_column(self, relationship_id: int, column: str, value: Any) -> bool:
        """Update one column on the edge with this id."""

    async def delete(self, relationship_id: int) -> bool:
        """Delete the edge with this id; return True if a row was removed."""


# User counter repository interface
class IUserCounterRepository(Protocol):
    """Protocol for user follow/fans counters (atomic, floor at zero on decrement)."""

    async def get_by_id(self, user_id: int) -> UserResult | None:
        """Return user with current counters."""

    async def adjust_follow_count(self, user_id: int, delta: int) -> bool:
        """Add delta to follow_count; negative deltas never go below zero."""

    async def adjust_fans_count(self, user_id: int, delta: int) -> bool:
        """Add delta to fans_count; negative deltas never go below zero."""

    async def lock_users(self, *user_ids: int) -> list[int]:
        """Row-lock the given users in ascending id order; return the ids found."""
