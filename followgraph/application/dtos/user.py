"""DTOs for user counters (no dependency on ORM)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class UserResult:
    """User read-model: identity plus follow counters."""

    id: int
    username: str
    follow_count: int
    fans_count: int
