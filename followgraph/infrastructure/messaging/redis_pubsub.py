"""Redis Pub/Sub for follow graph events.

FollowEventPublisher sends followed/unfollowed events after a transition
commits; FollowEventSubscriber lets fan-out workers consume them.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

import redis.asyncio as redis

from followgraph.application.dtos.follow_event import FollowEvent
from followgraph.core.config import Settings, get_settings
from followgraph.domain.enums import FollowEventType
from followgraph.shared.utils.datetime import utc_now

logger = logging.getLogger(__name__)


class _RedisPubSubBase:
    """Shared Redis connection and channel logic for follow event pub/sub."""

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize. Pass redis_client for DI/testing."""
        self.redis = redis_client
        self.settings = settings or get_settings()
        self.channel = self.settings.follow_event_channel
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Establish Redis connection. Call on app startup."""
        if self._connected:
            return
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=self.settings.redis_password.get_secret_value() if self.settings.redis_password else None,
                    decode_responses=True,
                    socket_connect_timeout=5,
                )
                await self.redis.ping()
                self._connected = True
                logger.info("Redis pub/sub connected")
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning("Redis pub/sub connection failed: %s", e)
                self._connected = False
                self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection. Call on app shutdown."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            self._connected = False
            logger.info("Redis pub/sub disconnected")

    def is_available(self) -> bool:
        """Return True if Redis is connected."""
        return self._connected and self.redis is not None


class FollowEventPublisher(_RedisPubSubBase):
    """Publishes follow graph events to the configured channel."""

    async def publish(self, event: FollowEvent) -> bool:
        """Publish event as JSON.

        Returns:
            True if published, False if Redis unavailable or the publish failed.
        """
        if not self.is_available() or self.redis is None:
            logger.debug("Redis not available, skipping publish of %s", event.event_type.value)
            return False
        try:
            message = json.dumps(event.to_dict())
            await self.redis.publish(self.channel, message)
            logger.debug(
                "Published %s to %s: %s -> %s",
                event.event_type.value,
                self.channel,
                event.subject_id,
                event.target_id,
            )
        except Exception:
            logger.exception("Failed to publish follow event")
            return False
        else:
            return True

    async def publish_followed(self, subject_id: int, target_id: int) -> bool:
        """Publish followed."""
        return await self.publish(
            FollowEvent(
                event_type=FollowEventType.FOLLOWED,
                subject_id=subject_id,
                target_id=target_id,
                timestamp=utc_now().isoformat(),
            )
        )

    async def publish_unfollowed(self, subject_id: int, target_id: int) -> bool:
        """Publish unfollowed."""
        return await self.publish(
            FollowEvent(
                event_type=FollowEventType.UNFOLLOWED,
                subject_id=subject_id,
                target_id=target_id,
                timestamp=utc_now().isoformat(),
            )
        )


class FollowEventSubscriber(_RedisPubSubBase):
    """Subscribes to follow graph events.

    subscribe() is reentrant: each call uses a locally-scoped PubSub that is
    closed in finally, so concurrent subscriptions are safe.
    """

    async def subscribe(self) -> AsyncIterator[FollowEvent]:
        """Yield follow events as they arrive. Malformed messages are logged and skipped."""
        if not self.is_available() or self.redis is None:
            logger.warning("Redis not available for subscription")
            return
        pubsub = self.redis.pubsub()
        try:
            await pubsub.subscribe(self.channel)
            logger.info("Subscribed to %s", self.channel)
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    data = json.loads(message["data"])
                    event = FollowEvent.from_dict(data)
                except (json.JSONDecodeError, KeyError, TypeError, ValueError):
                    logger.exception("Failed to parse follow event message")
                    continue
                yield event
        finally:
            await pubsub.unsubscribe(self.channel)
            await pubsub.aclose()
            logger.info("Unsubscribed from %s", self.channel)
