"""User counter repository. Atomic follow_count / fans_count adjustments."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from followgraph.application.dtos.user import UserResult
from followgraph.domain.exceptions import ValidationException
from followgraph.infrastructure.persistence.models.user import User
from followgraph.infrastructure.persistence.repositories.base import BaseRepository


def _user_to_result(u: User) -> UserResult:
    """Map ORM User to application UserResult."""
    return UserResult(
        id=u.id,
        username=u.username,
        follow_count=u.follow_count,
        fans_count=u.fans_count,
    )


class UserCounterRepository(BaseRepository[User]):
    """Counter updates run as single UPDATE statements inside the caller's transaction.

    Increments apply unconditionally. Decrements carry a WHERE guard so the
    counter stops at zero instead of going negative.
    """

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, User)

    async def get_by_id(self, user_id: int) -> UserResult | None:
        user = await super().get_by_id(user_id)
        return _user_to_result(user) if user else None

    async def create_user(self, username: str) -> UserResult:
        """Create a user with zeroed counters; raise ValidationException on duplicate username."""
        try:
            created = await self.create(User(username=username))
        except IntegrityError:
            raise ValidationException(
                f"Username already exists: {username}", field="username"
            ) from None
        return _user_to_result(created)

    async def lock_users(self, *user_ids: int) -> list[int]:
        """SELECT ... FOR UPDATE the given users in ascending id order.

        Follow and unfollow take these locks before touching edges or
        counters; transitions on the same pair serialise in a fixed lock
        order. Returns the ids that were found.
        """
        result = await self.db.execute(
            select(User.id)
            .where(User.id.in_(sorted(set(user_ids))))
            .order_by(User.id)
            .with_for_update()
        )
        return list(result.scalars().all())

    async def adjust_follow_count(self, user_id: int, delta: int) -> bool:
        return await self._adjust(User.follow_count, user_id, delta)

    async def adjust_fans_count(self, user_id: int, delta: int) -> bool:
        return await self._adjust(User.fans_count, user_id, delta)

    async def _adjust(self, column, user_id: int, delta: int) -> bool:
        """column = column + delta; with delta < 0 only where the result stays >= 0."""
        if delta == 0:
            return False
        stmt = update(User).where(User.id == user_id)
        if delta < 0:
            stmt = stmt.where(column >= -delta)
        result = await self.db.execute(
            stmt.values({column: column + delta}).execution_options(
                synchronize_session=False
            )
        )
        return result.rowcount > 0
