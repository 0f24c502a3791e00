"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Builds the
FollowGraphService with its engine, cache and publisher; no business
logic here, only wiring of infrastructure (Redis, telemetry, DB engine).
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from followgraph.application.services.follow_service import FollowGraphService
from followgraph.core.config import Settings, get_settings
from followgraph.infrastructure.cache.redis_cache import CacheService
from followgraph.infrastructure.messaging.redis_pubsub import FollowEventPublisher
from followgraph.infrastructure.persistence.database import (
    build_engine,
    create_session_factory,
)
from followgraph.infrastructure.persistence.repositories import (
    RelationshipRepository,
    UserCounterRepository,
)
from followgraph.shared.telemetry.logging import setup_logging
from followgraph.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    set_telemetry,
)

logger = logging.getLogger(__name__)


@dataclass
class FollowGraphContainer:
    """Objects built at startup and released at shutdown."""

    service: FollowGraphService
    session_factory: async_sessionmaker[AsyncSession]
    engine: AsyncEngine
    cache: CacheService | None = None
    publisher: FollowEventPublisher | None = None


@asynccontextmanager
async def create_lifespan(
    settings: Settings | None = None,
) -> AsyncIterator[FollowGraphContainer]:
    """Run startup then yield the container; on exit run shutdown.

    Startup order: SQL engine, telemetry (if enabled), Redis cache and
    publisher (if enabled). Raises SqlNotConfiguredException when
    DATABASE_URL is empty. Shutdown also runs when a startup step after
    the engine fails. Shutdown order: publisher and cache disconnect,
    telemetry shutdown, SQL engine dispose.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    # ---- Startup ----
    engine = build_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )
    cache = None
    publisher = None
    try:
        session_factory = create_session_factory(engine)

        if settings.telemetry_enabled:
            telemetry = TelemetryConfig.from_settings(settings)
            if telemetry.setup() is not None:
                telemetry.instrument(engine, redis_enabled=settings.redis_enabled)
                set_telemetry(telemetry)

        if settings.redis_enabled:
            cache = CacheService(settings=settings)
            await cache.connect()
            publisher = FollowEventPublisher(settings=settings)
            await publisher.connect()

        service = FollowGraphService(
            session_factory,
            RelationshipRepository,
            UserCounterRepository,
            cache=cache,
            publisher=publisher,
            page_size=settings.follow_page_size,
            scan_batch_size=settings.follow_scan_batch_size,
            user_cache_ttl=settings.cache_ttl_users,
        )
        logger.info(
            "Follow graph ready (page_size=%s, scan_batch_size=%s, redis=%s)",
            settings.follow_page_size,
            settings.follow_scan_batch_size,
            settings.redis_enabled,
        )

        yield FollowGraphContainer(
            service=service,
            session_factory=session_factory,
            engine=engine,
            cache=cache,
            publisher=publisher,
        )
    finally:
        # ---- Shutdown ----
        if publisher is not None:
            await publisher.disconnect()
        if cache is not None:
            await cache.disconnect()
            logger.info("Cache disconnected")

        telemetry_instance = get_telemetry()
        if telemetry_instance is not None:
            telemetry_instance.shutdown()
            set_telemetry(None)
            logger.info("Telemetry shutdown complete")

        await engine.dispose()
        logger.info("Database engine disposed")
