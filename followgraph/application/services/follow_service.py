"""Follow graph service: follow/unfollow transitions, listings, scans and membership.

Every write runs in one transaction opened on a fresh session; cache
invalidation and event publishing happen only after that transaction
commits and never fail the call.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from followgraph.application.dtos.follow_event import FollowEvent
from followgraph.application.dtos.query import Paging, QueryCriteria
from followgraph.application.dtos.relationship import (
    CursorPage,
    FollowOutcome,
    RelationshipResult,
)
from followgraph.application.dtos.user import UserResult
from followgraph.core.constants import (
    DEFAULT_FOLLOW_PAGE_SIZE,
    DEFAULT_FOLLOW_SCAN_BATCH_SIZE,
)
from followgraph.domain.enums import FollowEventType, FollowStatus
from followgraph.domain.exceptions import DuplicateFollowException, ValidationException
from followgraph.shared.telemetry.tracing import (
    add_span_attributes,
    add_span_event,
    traced,
)
from followgraph.shared.utils.datetime import now_timestamp, utc_now

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from followgraph.application.interfaces.repositories import (
        IRelationshipRepository,
        IUserCounterRepository,
    )
    from followgraph.application.interfaces.services import (
        IFollowEventPublisher,
        IUserCache,
    )

logger = logging.getLogger(__name__)

Visitor = Callable[[int], Awaitable[Any] | Any]


class FollowGraphService:
    """Directed follow graph with a mutual flag on reciprocated edges.

    Invariants kept by follow/unfollow: at most one edge per ordered pair,
    no self edges, A->B is mutual iff B->A exists, and user counters move
    with edge inserts/deletes in the same transaction.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        relationship_repo_factory: Callable[[AsyncSession], IRelationshipRepository],
        user_repo_factory: Callable[[AsyncSession], IUserCounterRepository],
        cache: IUserCache | None = None,
        publisher: IFollowEventPublisher | None = None,
        *,
        page_size: int = DEFAULT_FOLLOW_PAGE_SIZE,
        scan_batch_size: int = DEFAULT_FOLLOW_SCAN_BATCH_SIZE,
        user_cache_ttl: int = 300,
    ) -> None:
        if page_size <= 0 or scan_batch_size <= 0:
            raise ValidationException("page_size and scan_batch_size must be positive")
        self.session_factory = session_factory
        self.relationship_repo_factory = relationship_repo_factory
        self.user_repo_factory = user_repo_factory
        self.cache = cache
        self.publisher = publisher
        self.page_size = page_size
        self.scan_batch_size = scan_batch_size
        self.user_cache_ttl = user_cache_ttl

    @asynccontextmanager
    async def _reading(self) -> AsyncIterator[IRelationshipRepository]:
        async with self.session_factory() as session:
            yield self.relationship_repo_factory(session)

    @asynccontextmanager
    async def _writing(
        self,
    ) -> AsyncIterator[tuple[IRelationshipRepository, IUserCounterRepository]]:
        """Open a session and transaction; commit on exit, roll back on error."""
        async with self.session_factory() as session, session.begin():
            yield self.relationship_repo_factory(session), self.user_repo_factory(session)

    # ---- transitions ----

    @traced("follow_graph.follow")
    async def follow(self, subject_id: int, target_id: int) -> FollowOutcome:
        """Make subject follow target.

        Self-follow and an existing edge are no-op successes. When target
        already follows subject, both edges end up mutual. Both user rows are
        locked first, so a concurrent follow-back sees the committed edge
        and the pair ends mutual. A concurrent follow of the same pair that
        commits first turns this call into a no-op (its transaction rolls
        back, nothing is published).
        """
        if subject_id == target_id:
            return FollowOutcome(applied=False)
        existing = await self.take(subject_id, target_id)
        if existing is not None:
            return FollowOutcome(applied=False, status=existing.status)

        try:
            async with self._writing() as (relationships, users):
                await users.lock_users(subject_id, target_id)
                reverse_exists = await relationships.update_status(
                    target_id, subject_id, FollowStatus.MUTUAL
                )
                status = FollowStatus.MUTUAL if reverse_exists else FollowStatus.FOLLOWING
                await users.adjust_follow_count(subject_id, 1)
                await users.adjust_fans_count(target_id, 1)
                await relationships.create(subject_id, target_id, status, now_timestamp())
        except DuplicateFollowException:
            add_span_event("follow.duplicate_pair")
            logger.info(
                "Follow %s -> %s already committed concurrently; nothing applied",
                subject_id,
                target_id,
            )
            return FollowOutcome(applied=False)

        add_span_attributes(**{"follow.status": status.value})
        logger.info("User %s followed %s (%s)", subject_id, target_id, status.value)
        await self._after_commit(FollowEventType.FOLLOWED, subject_id, target_id)
        return FollowOutcome(applied=True, status=status)

    @traced("follow_graph.unfollow")
    async def unfollow(self, subject_id: int, target_id: int) -> FollowOutcome:
        """Remove the subject -> target edge.

        Not following (or self) is a no-op success. A reverse mutual edge is
        downgraded to following. If a concurrent unfollow removed the edge
        first, counters and the reverse edge are left alone.
        """
        if subject_id == target_id:
            return FollowOutcome(applied=False)
        if await self.take(subject_id, target_id) is None:
            return FollowOutcome(applied=False)

        async with self._writing() as (relationships, users):
            await users.lock_users(subject_id, target_id)
            removed = await relationships.delete_pair(subject_id, target_id)
            if removed:
                await relationships.update_status(
                    target_id, subject_id, FollowStatus.FOLLOWING
                )
                await users.adjust_follow_count(subject_id, -1)
                await users.adjust_fans_count(target_id, -1)

        if not removed:
            logger.info(
                "Unfollow %s -> %s found no edge; removed concurrently",
                subject_id,
                target_id,
            )
            return FollowOutcome(applied=False)

        logger.info("User %s unfollowed %s", subject_id, target_id)
        await self._after_commit(FollowEventType.UNFOLLOWED, subject_id, target_id)
        return FollowOutcome(applied=True)

    async def _after_commit(
        self, event_type: FollowEventType, subject_id: int, target_id: int
    ) -> None:
        await self._invalidate_user(subject_id)
        await self._invalidate_user(target_id)
        await self._publish(
            FollowEvent(
                event_type=event_type,
                subject_id=subject_id,
                target_id=target_id,
                timestamp=utc_now().isoformat(),
            )
        )

    async def _invalidate_user(self, user_id: int) -> None:
        if self.cache is None:
            return
        try:
            if not await self.cache.invalidate_user(user_id):
                logger.warning("User cache not invalidated for %s", user_id)
        except Exception:
            logger.exception("User cache invalidation failed for %s", user_id)

    async def _publish(self, event: FollowEvent) -> None:
        if self.publisher is None:
            return
        try:
            if not await self.publisher.publish(event):
                logger.warning(
                    "Follow event %s %s -> %s not published",
                    event.event_type.value,
                    event.subject_id,
                    event.target_id,
                )
        except Exception:
            logger.exception("Failed to publish %s event", event.event_type.value)

    # ---- listings ----

    @traced("follow_graph.get_fans")
    async def get_fans(self, user_id: int, cursor: int = 0) -> CursorPage:
        """Users following user_id, newest first, starting after cursor (0 = start)."""
        rows, next_cursor, has_more = await self._cursor_page("target_id", user_id, cursor)
        return CursorPage(
            items=[r.subject_id for r in rows], next_cursor=next_cursor, has_more=has_more
        )

    @traced("follow_graph.get_follows")
    async def get_follows(self, user_id: int, cursor: int = 0) -> CursorPage:
        """Users user_id follows, newest first, starting after cursor (0 = start)."""
        rows, next_cursor, has_more = await self._cursor_page("subject_id", user_id, cursor)
        return CursorPage(
            items=[r.target_id for r in rows], next_cursor=next_cursor, has_more=has_more
        )

    async def _cursor_page(
        self, column: str, user_id: int, cursor: int
    ) -> tuple[list[RelationshipResult], int, bool]:
        criteria = QueryCriteria().eq(column, user_id)
        if cursor > 0:
            criteria = criteria.lt("id", cursor)
        criteria = criteria.desc("id").limit(self.page_size)
        async with self._reading() as relationships:
            rows = await relationships.find(criteria)
        next_cursor = rows[-1].id if rows else cursor
        return rows, next_cursor, len(rows) == self.page_size

    # ---- scans ----

    async def iter_fans(self, user_id: int) -> AsyncIterator[int]:
        """Yield every fan of user_id in ascending edge id order, batch by batch."""
        async for row in self._scan("target_id", user_id):
            yield row.subject_id

    async def iter_followed(self, user_id: int) -> AsyncIterator[int]:
        """Yield every user user_id follows in ascending edge id order."""
        async for row in self._scan("subject_id", user_id):
            yield row.target_id

    async def _scan(self, column: str, user_id: int) -> AsyncIterator[RelationshipResult]:
        """Forward keyset scan; each batch uses its own short-lived session."""
        after = 0
        while True:
            criteria = (
                QueryCriteria()
                .eq(column, user_id)
                .gt("id", after)
                .asc("id")
                .limit(self.scan_batch_size)
            )
            async with self._reading() as relationships:
                batch = await relationships.find(criteria)
            if not batch:
                return
            after = batch[-1].id
            for row in batch:
                yield row

    async def scan_fans(self, user_id: int, visit: Visitor) -> int:
        """Call visit(fan_id) for every fan; returns how many were visited."""
        return await self._visit_all(self.iter_fans(user_id), visit)

    async def scan_followed(self, user_id: int, visit: Visitor) -> int:
        """Call visit(target_id) for every followed user; returns how many were visited."""
        return await self._visit_all(self.iter_followed(user_id), visit)

    @staticmethod
    async def _visit_all(user_ids: AsyncIterator[int], visit: Visitor) -> int:
        visited = 0
        async for user_id in user_ids:
            result = visit(user_id)
            if inspect.isawaitable(result):
                await result
            visited += 1
        return visited

    # ---- membership ----

    async def is_followed(self, subject_id: int, target_id: int) -> bool:
        """True iff subject follows target (following or mutual)."""
        if subject_id == target_id:
            return False
        return await self.take(subject_id, target_id) is not None

    async def is_followed_users(
        self, subject_id: int, target_ids: Iterable[int]
    ) -> set[int]:
        """Subset of target_ids that subject follows. Empty input runs no query."""
        wanted = set(target_ids)
        if not wanted:
            return set()
        async with self._reading() as relationships:
            rows = await relationships.find(
                QueryCriteria()
                .eq("subject_id", subject_id)
                .in_("target_id", sorted(wanted))
            )
        return {r.target_id for r in rows}

    # ---- users ----

    async def get_user(self, user_id: int) -> UserResult | None:
        """Return user with counters, read through the user cache."""
        if self.cache is not None:
            cached = await self.cache.get_user(user_id)
            if cached is not None:
                return UserResult(**cached)
        async with self.session_factory() as session:
            user = await self.user_repo_factory(session).get_by_id(user_id)
        if user is not None and self.cache is not None:
            await self.cache.set_user(user_id, asdict(user), ttl=self.user_cache_ttl)
        return user

    # ---- generic edge access (no follow rules, no side effects) ----

    async def get(self, relationship_id: int) -> RelationshipResult | None:
        async with self._reading() as relationships:
            return await relationships.get_by_id(relationship_id)

    async def take(self, subject_id: int, target_id: int) -> RelationshipResult | None:
        async with self._reading() as relationships:
            return await relationships.take(subject_id, target_id)

    async def find(self, criteria: QueryCriteria) -> list[RelationshipResult]:
        async with self._reading() as relationships:
            return await relationships.find(criteria)

    async def find_one(self, criteria: QueryCriteria) -> RelationshipResult | None:
        async with self._reading() as relationships:
            return await relationships.find_one(criteria)

    async def find_page(
        self, criteria: QueryCriteria
    ) -> tuple[list[RelationshipResult], Paging]:
        async with self._reading() as relationships:
            return await relationships.find_page(criteria)

    async def count(self, criteria: QueryCriteria) -> int:
        async with self._reading() as relationships:
            return await relationships.count(criteria)

    async def create(
        self,
        subject_id: int,
        target_id: int,
        status: FollowStatus = FollowStatus.FOLLOWING,
        created_at: int | None = None,
    ) -> RelationshipResult:
        """Insert a raw edge. Counters and the reverse edge are not touched."""
        async with self._writing() as (relationships, _):
            return await relationships.create(
                subject_id,
                target_id,
                status,
                created_at if created_at is not None else now_timestamp(),
            )

    async def update_status(
        self, subject_id: int, target_id: int, status: FollowStatus
    ) -> bool:
        async with self._writing() as (relationships, _):
            return await relationships.update_status(subject_id, target_id, status)

    async def updates(self, relationship_id: int, columns: dict[str, Any]) -> bool:
        async with self._writing() as (relationships, _):
            return await relationships.updates(relationship_id, columns)

    async def update_column(self, relationship_id: int, column: str, value: Any) -> bool:
        return await self.updates(relationship_id, {column: value})

    async def delete(self, relationship_id: int) -> bool:
        async with self._writing() as (relationships, _):
            return await relationships.delete(relationship_id)
