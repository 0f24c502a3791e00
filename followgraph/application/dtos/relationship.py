"""DTOs for follow relationship use cases (no dependency on ORM)."""

from dataclasses import dataclass, field

from followgraph.domain.enums import FollowStatus


@dataclass(frozen=True)
class RelationshipResult:
    """Follow edge read-model (result of create, find, take, etc.)."""

    id: int
    subject_id: int
    target_id: int
    status: FollowStatus
    created_at: int


@dataclass(frozen=True)
class CursorPage:
    """One page of user ids from a fans/follows listing.

    next_cursor is the relationship id of the last row returned, or the
    input cursor when the page is empty. has_more is True iff the page was
    full; when the remaining rows end exactly on a page boundary it reports
    True once more and the following call returns an empty page.
    """

    items: list[int] = field(default_factory=list)
    next_cursor: int = 0
    has_more: bool = False


@dataclass(frozen=True)
class FollowOutcome:
    """Result of follow/unfollow.

    applied is False for no-op successes (self-follow, already following,
    not following, lost a concurrent race). status is the subject -> target
    edge status after follow, including an edge that already existed; it is
    None after unfollow, self-follow and a lost race.
    """

    applied: bool
    status: FollowStatus | None = None
