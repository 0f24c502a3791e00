"""Application services."""

from followgraph.application.services.follow_service import FollowGraphService

__all__ = ["FollowGraphService"]
