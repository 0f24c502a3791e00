"""Follow edge repository (user_follow). Interface methods return application DTOs."""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from followgraph.application.dtos.query import Paging, QueryCriteria
from followgraph.application.dtos.relationship import RelationshipResult
from followgraph.domain.enums import FollowStatus
from followgraph.domain.exceptions import DuplicateFollowException, ValidationException
from followgraph.infrastructure.persistence.models.user_follow import UserFollow
from followgraph.infrastructure.persistence.repositories.base import BaseRepository

# Columns callers may set through updates(); the pair itself is immutable.
_UPDATABLE_COLUMNS = frozenset({"status", "created_at"})


def _to_result(r: UserFollow) -> RelationshipResult:
    """Map ORM to RelationshipResult."""
    return RelationshipResult(
        id=r.id,
        subject_id=r.subject_id,
        target_id=r.target_id,
        status=FollowStatus(r.status),
        created_at=r.created_at,
    )


class RelationshipRepository(BaseRepository[UserFollow]):
    """CRUD over user_follow. Owns no follow rules; storage errors propagate."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, UserFollow)

    async def get_by_id(self, relationship_id: int) -> RelationshipResult | None:
        row = await super().get_by_id(relationship_id)
        return _to_result(row) if row else None

    async def take(self, subject_id: int, target_id: int) -> RelationshipResult | None:
        """Return the subject -> target edge, or None."""
        return await self.find_one(
            QueryCriteria().eq("subject_id", subject_id).eq("target_id", target_id)
        )

    async def find(self, criteria: QueryCriteria) -> list[RelationshipResult]:
        return [_to_result(r) for r in await self.find_models(criteria)]

    async def find_one(self, criteria: QueryCriteria) -> RelationshipResult | None:
        first = QueryCriteria(
            conditions=list(criteria.conditions),
            orders=list(criteria.orders),
            offset_value=criteria.offset_value,
        ).limit(1)
        rows = await self.find_models(first)
        return _to_result(rows[0]) if rows else None

    async def find_page(
        self, criteria: QueryCriteria
    ) -> tuple[list[RelationshipResult], Paging]:
        """Return one offset page plus total. Without a limit the whole set is one page."""
        total = await self.count(criteria)
        items = await self.find(criteria)
        limit = criteria.limit_value or max(total, 1)
        page = criteria.offset_value // limit + 1
        return items, Paging(page=page, limit=limit, total=total)

    async def create(
        self,
        subject_id: int,
        target_id: int,
        status: FollowStatus,
        created_at: int,
    ) -> RelationshipResult:
        """Insert an edge inside a savepoint.

        Raises DuplicateFollowException when the pair already exists (e.g. a
        concurrent follow committed first). Any other integrity error (missing
        user, self edge) is re-raised unchanged.
        """
        row = UserFollow(
            subject_id=subject_id,
            target_id=target_id,
            status=FollowStatus(status).value,
            created_at=created_at,
        )
        try:
            async with self.db.begin_nested():
                created = await super().create(row)
        except IntegrityError:
            if await self.take(subject_id, target_id) is not None:
                raise DuplicateFollowException(subject_id, target_id) from None
            raise
        return _to_result(created)

    async def delete_pair(self, subject_id: int, target_id: int) -> bool:
        """Delete the subject -> target edge; return True if a row was removed."""
        result = await self.db.execute(
            delete(UserFollow)
            .where(
                UserFollow.subject_id == subject_id,
                UserFollow.target_id == target_id,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def update_status(
        self, subject_id: int, target_id: int, status: FollowStatus
    ) -> bool:
        """Set status on the subject -> target edge; return True if the row exists."""
        result = await self.db.execute(
            update(UserFollow)
            .where(
                UserFollow.subject_id == subject_id,
                UserFollow.target_id == target_id,
            )
            .values(status=FollowStatus(status).value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    async def updates(self, relationship_id: int, columns: dict[str, Any]) -> bool:
        """Update status/created_at on the edge with this id."""
        unknown = set(columns) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValidationException(
                f"Cannot update column(s) {', '.join(sorted(unknown))} on user_follow",
                field=sorted(unknown)[0],
            )
        values = dict(columns)
        if "status" in values:
            try:
                values["status"] = FollowStatus(values["status"]).value
            except ValueError:
                raise ValidationException(
                    f"Invalid follow status {values['status']!r}; expected one of "
                    f"{', '.join(FollowStatus.values())}",
                    field="status",
                ) from None
        return await self.update_columns(relationship_id, values)

    async def delete(self, relationship_id: int) -> bool:
        return await self.delete_by_id(relationship_id)

    async def update_column(self, relationship_id: int, column: str, value: Any) -> bool:
        return await self.updates(relationship_id, {column: value})
