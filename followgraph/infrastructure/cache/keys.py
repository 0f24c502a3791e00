"""Cache key builders. Single place for key format (DRY)."""

from followgraph.core.constants import CACHE_KEY_SEP, CACHE_PREFIX_USER


def user_key(user_id: int) -> str:
    """Cache key for user record (counters included) by ID."""
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise ValueError(f"user_id must be an int, got {type(user_id).__name__}")
    return f"{CACHE_PREFIX_USER}{CACHE_KEY_SEP}id{CACHE_KEY_SEP}{user_id}"
