"""Shared utilities: datetime helpers."""

from followgraph.shared.utils.datetime import now_timestamp, utc_now

__all__ = [
    "utc_now",
    "now_timestamp",
]
