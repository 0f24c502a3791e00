"""Messaging: Redis pub/sub for follow graph events."""

from followgraph.infrastructure.messaging.redis_pubsub import (
    FollowEventPublisher,
    FollowEventSubscriber,
)

__all__ = [
    "FollowEventPublisher",
    "FollowEventSubscriber",
]
