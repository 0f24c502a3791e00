"""Core constants: cache key prefixes, channel names, and paging defaults.

Single source of truth for cache key structure and page sizes (DRY).
"""

# Cache key prefixes (used with :id:<value>)
CACHE_PREFIX_USER = "user"

# Delimiter for composite keys
CACHE_KEY_SEP = ":"

# Redis pub/sub channel for follow graph events
FOLLOW_EVENT_CHANNEL = "follow_events"

# Cursor listing page size (GetFans / GetFollows)
DEFAULT_FOLLOW_PAGE_SIZE = 20

# Forward scan batch size (ScanFans / ScanFollowed)
DEFAULT_FOLLOW_SCAN_BATCH_SIZE = 100
