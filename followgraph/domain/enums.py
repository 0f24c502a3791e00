"""Domain enumerations for the follow graph."""

from enum import Enum


class FollowStatus(str, Enum):
    """Status of one directed follow edge (subject -> target).

    Stored redundantly on both directions: when A and B follow each other
    both rows carry MUTUAL.
    """

    FOLLOWING = "following"
    MUTUAL = "mutual"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid status values as strings."""
        return [status.value for status in cls]


class FollowEventType(str, Enum):
    """Event types published after a follow graph transition commits."""

    FOLLOWED = "followed"
    UNFOLLOWED = "unfollowed"
