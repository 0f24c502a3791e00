"""Service interfaces (ports) for the application layer.

Protocols for the post-commit side channels of the follow graph (DIP).
Both are best effort: implementations report failure through the return
value and logging, never by raising into the follow/unfollow path.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from followgraph.application.dtos.follow_event import FollowEvent


# User cache interface
class IUserCache(Protocol):
    """Protocol for the user record cache, addressed by user id (DIP)."""

    async def get_user(self, user_id: int) -> dict[str, Any] | None:
        """Return cached user fields or None on miss/unavailable."""

    async def set_user(self, user_id: int, data: dict[str, Any], ttl: int = 300) -> bool:
        """Cache user fields with TTL. Returns True on success."""

    async def invalidate_user(self, user_id: int) -> bool:
        """Drop the cached user. Idempotent; returns True if the cache accepted it."""


# Event publisher interface
class IFollowEventPublisher(Protocol):
    """Protocol for publishing followed/unfollowed events (at-least-once downstream)."""

    async def publish(self, event: FollowEvent) -> bool:
        """Publish event. Returns True if handed to the channel."""
