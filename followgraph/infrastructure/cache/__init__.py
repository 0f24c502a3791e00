"""Cache: Redis service and cache key utilities.

Used by FollowGraphService to read user records through the cache and to
invalidate them after follow/unfollow commits.
"""

from followgraph.infrastructure.cache.keys import user_key
from followgraph.infrastructure.cache.redis_cache import CacheService

__all__ = [
    "CacheService",
    "user_key",
]
