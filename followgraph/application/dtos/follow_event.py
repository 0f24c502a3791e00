"""Follow graph event payload (published after commit)."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from followgraph.domain.enums import FollowEventType


@dataclass(frozen=True)
class FollowEvent:
    """followed / unfollowed event carrying the edge endpoints."""

    event_type: FollowEventType
    subject_id: int
    target_id: int
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON publish."""
        data = asdict(self)
        data["event_type"] = self.event_type.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FollowEvent:
        """Deserialize from a published message."""
        return cls(
            event_type=FollowEventType(data["event_type"]),
            subject_id=int(data["subject_id"]),
            target_id=int(data["target_id"]),
            timestamp=str(data["timestamp"]),
        )
