"""Shared utilities: telemetry and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from followgraph.shared.utils import now_timestamp, utc_now

__all__ = [
    "utc_now",
    "now_timestamp",
]
