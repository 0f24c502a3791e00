"""Redis-backed user cache.

FollowGraphService reads user records through it and invalidates both
endpoints after a follow/unfollow commits. Key format lives in
followgraph.infrastructure.cache.keys (DRY).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import redis.asyncio as redis

from followgraph.core.config import Settings, get_settings
from followgraph.infrastructure.cache.keys import user_key

logger = logging.getLogger(__name__)

_MISSING = object()


class CacheService:
    """Async Redis cache with TTL support.

    Every operation is best effort: when Redis is unavailable or a command
    fails, reads return None and writes return False after logging. A
    dropped connection is re-established once per command before giving up.
    Call connect() at startup and disconnect() at shutdown.
    """

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize cache service.

        Args:
            redis_client: Optional Redis client for testing or DI; treated as connected.
            settings: Optional settings; defaults to get_settings().
        """
        self.redis = redis_client
        self.settings = settings or get_settings()
        self._connected = redis_client is not None

    async def connect(self) -> None:
        """Open and ping the Redis connection. Failure leaves the cache disabled."""
        if self.redis is not None:
            return
        password = self.settings.redis_password
        client = redis.Redis(
            host=self.settings.redis_host,
            port=self.settings.redis_port,
            db=self.settings.redis_db,
            password=password.get_secret_value() if password else None,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )
        try:
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis connection failed: %s. User cache disabled.", e)
            await client.aclose()
            return
        self.redis = client
        self._connected = True
        logger.info(
            "Redis cache connected: %s:%s/%s",
            self.settings.redis_host,
            self.settings.redis_port,
            self.settings.redis_db,
        )

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        if self.redis is not None:
            await self.redis.aclose()
            logger.info("Redis cache disconnected")
        self.redis = None
        self._connected = False

    def is_available(self) -> bool:
        """Return True if Redis is connected and usable."""
        return self._connected and self.redis is not None

    async def _reconnect(self) -> bool:
        if self.redis is not None:
            try:
                await self.redis.aclose()
            except redis.RedisError:
                logger.debug("Ignoring error while closing stale Redis connection")
        self.redis = None
        self._connected = False
        await self.connect()
        return self.is_available()

    async def _run(
        self,
        action: str,
        key: str,
        command: Callable[[redis.Redis], Awaitable[Any]],
    ) -> Any:
        """Run command against Redis; _MISSING when unavailable or it failed."""
        if not self.is_available() or self.redis is None:
            return _MISSING
        try:
            return await command(self.redis)
        except (redis.ConnectionError, redis.TimeoutError):
            if not await self._reconnect() or self.redis is None:
                logger.warning("Cache %s skipped for %s (Redis disconnected)", action, key)
                return _MISSING
            try:
                return await command(self.redis)
            except redis.RedisError:
                logger.exception("Cache %s error for %s after reconnect", action, key)
                return _MISSING
        except redis.RedisError:
            logger.exception("Cache %s error for %s", action, key)
            return _MISSING

    async def get(self, key: str) -> Any | None:
        """Return the JSON-decoded value under key, or None on miss/unavailable."""
        value = await self._run("get", key, lambda r: r.get(key))
        if value is _MISSING or value is None:
            logger.debug("Cache MISS: %s", key)
            return None
        logger.debug("Cache HIT: %s", key)
        return json.loads(value)

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """Store value as JSON with TTL in seconds. Returns True on success."""
        serialized = json.dumps(value)
        if await self._run("set", key, lambda r: r.setex(key, ttl, serialized)) is _MISSING:
            return False
        logger.debug("Cache SET: %s (TTL: %ss)", key, ttl)
        return True

    async def delete(self, key: str) -> bool:
        """Remove key. Idempotent; returns True if Redis accepted the command."""
        if await self._run("delete", key, lambda r: r.delete(key)) is _MISSING:
            return False
        logger.debug("Cache DELETE: %s", key)
        return True

    async def get_user(self, user_id: int) -> dict[str, Any] | None:
        """Return cached user fields for user_id, or None."""
        return await self.get(user_key(user_id))

    async def set_user(self, user_id: int, data: dict[str, Any], ttl: int = 300) -> bool:
        """Cache user fields for user_id with TTL."""
        return await self.set(user_key(user_id), data, ttl=ttl)

    async def invalidate_user(self, user_id: int) -> bool:
        """Drop the cached user record for user_id."""
        return await self.delete(user_key(user_id))
