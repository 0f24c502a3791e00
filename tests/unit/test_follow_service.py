"""FollowGraphService unit tests with mocked repositories, cache and publisher."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from followgraph.application.dtos.follow_event import FollowEvent
from followgraph.application.dtos.relationship import RelationshipResult
from followgraph.application.dtos.user import UserResult
from followgraph.application.services.follow_service import FollowGraphService
from followgraph.domain.enums import FollowEventType, FollowStatus
from followgraph.domain.exceptions import DuplicateFollowException, ValidationException


class _FakeTransaction:
    def __init__(self, session: "_FakeSession") -> None:
        self.session = session

    async def __aenter__(self) -> "_FakeTransaction":
        self.session.began += 1
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.session.commits += 1
        else:
            self.session.rollbacks += 1
        return False


class _FakeSession:
    """Stands in for AsyncSession: records transaction outcomes."""

    def __init__(self) -> None:
        self.began = 0
        self.commits = 0
        self.rollbacks = 0

    async def __aenter__(self) -> "_FakeSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False

    def begin(self) -> _FakeTransaction:
        return _FakeTransaction(self)


def _edge(
    subject_id: int = 1,
    target_id: int = 2,
    status: FollowStatus = FollowStatus.FOLLOWING,
    id: int = 10,
) -> RelationshipResult:
    return RelationshipResult(
        id=id,
        subject_id=subject_id,
        target_id=target_id,
        status=status,
        created_at=1_700_000_000,
    )


@pytest.fixture
def service_mocks():
    """FollowGraphService wired to one fake session and mocked collaborators."""
    session = _FakeSession()
    session_factory = MagicMock(return_value=session)
    relationships = AsyncMock()
    relationships.take = AsyncMock(return_value=None)
    relationships.update_status = AsyncMock(return_value=False)
    relationships.create = AsyncMock(return_value=_edge())
    relationships.delete_pair = AsyncMock(return_value=True)
    users = AsyncMock()
    users.adjust_follow_count = AsyncMock(return_value=True)
    users.adjust_fans_count = AsyncMock(return_value=True)
    users.lock_users = AsyncMock(side_effect=lambda *ids: sorted(ids))
    cache = AsyncMock()
    cache.invalidate_user = AsyncMock(return_value=True)
    publisher = AsyncMock()
    publisher.publish = AsyncMock(return_value=True)
    svc = FollowGraphService(
        session_factory,
        lambda _session: relationships,
        lambda _session: users,
        cache=cache,
        publisher=publisher,
        page_size=3,
        scan_batch_size=2,
    )
    return svc, session, session_factory, relationships, users, cache, publisher


async def test_follow_self_is_noop(service_mocks) -> None:
    """follow(a, a) returns a no-op success and never opens a session."""
    svc, _session, session_factory, _rel, _users, cache, publisher = service_mocks
    outcome = await svc.follow(1, 1)
    assert outcome.applied is False
    session_factory.assert_not_called()
    cache.invalidate_user.assert_not_awaited()
    publisher.publish.assert_not_awaited()


async def test_follow_existing_edge_is_noop(service_mocks) -> None:
    """An existing edge short-circuits before any write transaction."""
    svc, session, _sf, relationships, users, _cache, publisher = service_mocks
    relationships.take.return_value = _edge(status=FollowStatus.MUTUAL)
    outcome = await svc.follow(1, 2)
    assert outcome.applied is False
    assert outcome.status == FollowStatus.MUTUAL
    assert session.began == 0
    users.adjust_follow_count.assert_not_awaited()
    publisher.publish.assert_not_awaited()


async def test_follow_without_reverse_creates_following_edge(service_mocks) -> None:
    """No reverse edge: new edge is following, counters +1, both users invalidated, one event."""
    svc, session, _sf, relationships, users, cache, publisher = service_mocks
    outcome = await svc.follow(1, 2)

    assert outcome.applied is True
    assert outcome.status == FollowStatus.FOLLOWING
    relationships.update_status.assert_awaited_once_with(2, 1, FollowStatus.MUTUAL)
    users.adjust_follow_count.assert_awaited_once_with(1, 1)
    users.adjust_fans_count.assert_awaited_once_with(2, 1)
    args = relationships.create.await_args.args
    assert args[:3] == (1, 2, FollowStatus.FOLLOWING)
    assert isinstance(args[3], int)
    assert session.commits == 1
    assert [c.args[0] for c in cache.invalidate_user.await_args_list] == [1, 2]
    publisher.publish.assert_awaited_once()
    event: FollowEvent = publisher.publish.await_args.args[0]
    assert event.event_type == FollowEventType.FOLLOWED
    assert (event.subject_id, event.target_id) == (1, 2)


async def test_follow_with_reverse_creates_mutual_edge(service_mocks) -> None:
    """Reverse edge matched by update_status: the new edge is mutual."""
    svc, _session, _sf, relationships, _users, _cache, _pub = service_mocks
    relationships.update_status.return_value = True
    outcome = await svc.follow(1, 2)
    assert outcome.status == FollowStatus.MUTUAL
    assert relationships.create.await_args.args[2] == FollowStatus.MUTUAL


async def test_follow_race_loser_is_noop_success(service_mocks) -> None:
    """Duplicate pair at insert: transaction rolls back, no cache or event side effects."""
    svc, session, _sf, relationships, _users, cache, publisher = service_mocks
    relationships.create.side_effect = DuplicateFollowException(1, 2)
    outcome = await svc.follow(1, 2)
    assert outcome.applied is False
    assert session.rollbacks == 1
    assert session.commits == 0
    cache.invalidate_user.assert_not_awaited()
    publisher.publish.assert_not_awaited()


async def test_follow_and_unfollow_lock_users_before_writing(service_mocks) -> None:
    """Both user rows are locked before any edge or counter statement runs."""
    svc, _session, _sf, relationships, users, _cache, _pub = service_mocks
    calls: list[str] = []
    users.lock_users.side_effect = lambda *ids: calls.append("lock") or sorted(ids)
    relationships.update_status.side_effect = lambda *a: calls.append("update_status") or False
    relationships.delete_pair.side_effect = lambda *a: calls.append("delete_pair") or True
    users.adjust_follow_count.side_effect = lambda *a: calls.append("adjust") or True

    await svc.follow(5, 2)
    assert calls[0] == "lock"
    users.lock_users.assert_awaited_once_with(5, 2)

    calls.clear()
    relationships.take.return_value = _edge(subject_id=5, target_id=2)
    await svc.unfollow(5, 2)
    assert calls[0] == "lock"
    assert users.lock_users.await_count == 2


async def test_follow_storage_error_propagates_without_side_effects(service_mocks) -> None:
    """Storage errors reach the caller; the transaction rolls back and nothing is published."""
    svc, session, _sf, relationships, _users, cache, publisher = service_mocks
    relationships.create.side_effect = OperationalError("INSERT", {}, Exception("down"))
    with pytest.raises(OperationalError):
        await svc.follow(1, 2)
    assert session.rollbacks == 1
    cache.invalidate_user.assert_not_awaited()
    publisher.publish.assert_not_awaited()


async def test_follow_cache_failure_does_not_surface(service_mocks) -> None:
    """A raising cache is logged; the follow still succeeds and the event is still published."""
    svc, _session, _sf, _rel, _users, cache, publisher = service_mocks
    cache.invalidate_user.side_effect = RuntimeError("redis gone")
    outcome = await svc.follow(1, 2)
    assert outcome.applied is True
    assert cache.invalidate_user.await_count == 2
    publisher.publish.assert_awaited_once()


async def test_follow_publish_failure_does_not_surface(service_mocks) -> None:
    """Publisher errors and False returns are swallowed after commit."""
    svc, session, _sf, _rel, _users, _cache, publisher = service_mocks
    publisher.publish.side_effect = RuntimeError("channel closed")
    assert (await svc.follow(1, 2)).applied is True
    publisher.publish.side_effect = None
    publisher.publish.return_value = False
    assert (await svc.follow(1, 3)).applied is True
    assert session.commits == 2


async def test_follow_without_cache_or_publisher(service_mocks) -> None:
    """Cache and publisher are optional collaborators."""
    _svc, _session, session_factory, relationships, users, _cache, _pub = service_mocks
    svc = FollowGraphService(
        session_factory, lambda _s: relationships, lambda _s: users
    )
    assert (await svc.follow(1, 2)).applied is True


async def test_unfollow_not_following_is_noop(service_mocks) -> None:
    svc, session, _sf, relationships, _users, _cache, publisher = service_mocks
    outcome = await svc.unfollow(1, 2)
    assert outcome.applied is False
    assert session.began == 0
    relationships.delete_pair.assert_not_awaited()
    publisher.publish.assert_not_awaited()


async def test_unfollow_self_is_noop(service_mocks) -> None:
    svc, _session, session_factory, _rel, _users, _cache, _pub = service_mocks
    assert (await svc.unfollow(4, 4)).applied is False
    session_factory.assert_not_called()


async def test_unfollow_downgrades_reverse_and_decrements(service_mocks) -> None:
    """Removing A->B downgrades B->A to following and decrements both counters."""
    svc, session, _sf, relationships, users, cache, publisher = service_mocks
    relationships.take.return_value = _edge(status=FollowStatus.MUTUAL)
    outcome = await svc.unfollow(1, 2)

    assert outcome.applied is True
    assert outcome.status is None
    relationships.delete_pair.assert_awaited_once_with(1, 2)
    relationships.update_status.assert_awaited_once_with(2, 1, FollowStatus.FOLLOWING)
    users.adjust_follow_count.assert_awaited_once_with(1, -1)
    users.adjust_fans_count.assert_awaited_once_with(2, -1)
    assert session.commits == 1
    assert cache.invalidate_user.await_count == 2
    event: FollowEvent = publisher.publish.await_args.args[0]
    assert event.event_type == FollowEventType.UNFOLLOWED


async def test_unfollow_race_loser_skips_counters_and_side_effects(service_mocks) -> None:
    """Edge already gone at delete time: no downgrade, no decrements, nothing published."""
    svc, _session, _sf, relationships, users, cache, publisher = service_mocks
    relationships.take.return_value = _edge()
    relationships.delete_pair.return_value = False
    outcome = await svc.unfollow(1, 2)
    assert outcome.applied is False
    relationships.update_status.assert_not_awaited()
    users.adjust_follow_count.assert_not_awaited()
    users.adjust_fans_count.assert_not_awaited()
    cache.invalidate_user.assert_not_awaited()
    publisher.publish.assert_not_awaited()


async def test_get_fans_builds_descending_cursor_query(service_mocks) -> None:
    """get_fans filters by target, pages below the cursor, newest first."""
    svc, _session, _sf, relationships, _users, _cache, _pub = service_mocks
    relationships.find = AsyncMock(
        return_value=[_edge(subject_id=s, target_id=9, id=i) for s, i in ((5, 30), (6, 20), (7, 10))]
    )
    page = await svc.get_fans(9, cursor=40)
    assert page.items == [5, 6, 7]
    assert page.next_cursor == 10
    assert page.has_more is True
    criteria = relationships.find.await_args.args[0]
    assert [(c.column, c.op.value, c.value) for c in criteria.conditions] == [
        ("target_id", "eq", 9),
        ("id", "lt", 40),
    ]
    assert [(o.column, o.descending) for o in criteria.orders] == [("id", True)]
    assert criteria.limit_value == 3


async def test_get_follows_empty_page_keeps_cursor(service_mocks) -> None:
    svc, _session, _sf, relationships, _users, _cache, _pub = service_mocks
    relationships.find = AsyncMock(return_value=[])
    page = await svc.get_follows(9, cursor=17)
    assert page.items == []
    assert page.next_cursor == 17
    assert page.has_more is False


async def test_scan_followed_stops_on_first_empty_batch(service_mocks) -> None:
    """Scan advances the cursor batch by batch and calls visit once per row."""
    svc, _session, _sf, relationships, _users, _cache, _pub = service_mocks
    relationships.find = AsyncMock(
        side_effect=[
            [_edge(target_id=2, id=1), _edge(target_id=3, id=4)],
            [_edge(target_id=5, id=8)],
            [],
        ]
    )
    seen: list[int] = []
    visited = await svc.scan_followed(1, seen.append)
    assert visited == 3
    assert seen == [2, 3, 5]
    cursors = [
        next(c.value for c in call.args[0].conditions if c.op.value == "gt")
        for call in relationships.find.await_args_list
    ]
    assert cursors == [0, 4, 8]


async def test_scan_fans_accepts_async_visitor(service_mocks) -> None:
    svc, _session, _sf, relationships, _users, _cache, _pub = service_mocks
    relationships.find = AsyncMock(side_effect=[[_edge(subject_id=3, target_id=1, id=2)], []])
    visit = AsyncMock()
    assert await svc.scan_fans(1, visit) == 1
    visit.assert_awaited_once_with(3)


async def test_is_followed_users_empty_input_runs_no_query(service_mocks) -> None:
    svc, _session, session_factory, _rel, _users, _cache, _pub = service_mocks
    assert await svc.is_followed_users(1, []) == set()
    session_factory.assert_not_called()


async def test_is_followed_self_is_false(service_mocks) -> None:
    svc, _session, session_factory, _rel, _users, _cache, _pub = service_mocks
    assert await svc.is_followed(2, 2) is False
    session_factory.assert_not_called()


async def test_get_user_served_from_cache(service_mocks) -> None:
    """A cache hit skips the user repository entirely."""
    svc, _session, session_factory, _rel, users, cache, _pub = service_mocks
    cache.get_user = AsyncMock(
        return_value={"id": 1, "username": "ann", "follow_count": 2, "fans_count": 3}
    )
    user = await svc.get_user(1)
    assert user == UserResult(id=1, username="ann", follow_count=2, fans_count=3)
    session_factory.assert_not_called()


async def test_get_user_miss_populates_cache(service_mocks) -> None:
    svc, _session, _sf, _rel, users, cache, _pub = service_mocks
    cache.get_user = AsyncMock(return_value=None)
    cache.set_user = AsyncMock(return_value=True)
    users.get_by_id = AsyncMock(
        return_value=UserResult(id=1, username="ann", follow_count=0, fans_count=1)
    )
    user = await svc.get_user(1)
    assert user is not None and user.fans_count == 1
    cache.set_user.assert_awaited_once_with(
        1,
        {"id": 1, "username": "ann", "follow_count": 0, "fans_count": 1},
        ttl=300,
    )


def test_non_positive_sizes_rejected() -> None:
    with pytest.raises(ValidationException):
        FollowGraphService(MagicMock(), MagicMock(), MagicMock(), page_size=0)
    with pytest.raises(ValidationException):
        FollowGraphService(MagicMock(), MagicMock(), MagicMock(), scan_batch_size=-1)
