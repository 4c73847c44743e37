"""
Application context.

Everything process-wide (engine, store, change-feed transport, Redis, open
views) is built here once at startup and handed to the API through
``app.state.context``; ``close()`` is the matching teardown.
"""
from typing import Optional
import logging

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from feedsync.config import Settings, get_settings
from feedsync.db.session import close_db, create_engine_from_settings, create_session_factory, init_db
from feedsync.realtime.subscription import ChangeFeed
from feedsync.realtime.transport import ChangeFeedTransport, InMemoryChangeFeed, RedisChangeFeed
from feedsync.services.auth_service import AuthService
from feedsync.services.preference_service import PreferenceService
from feedsync.services.redis_service import RedisService
from feedsync.services.remote_store import RemoteStore
from feedsync.websocket.manager import ViewManager

logger = logging.getLogger(__name__)

class AppContext:
    def __init__(
        self,
        settings: Settings,
        engine: AsyncEngine,
        session_factory: async_sessionmaker,
        redis: RedisService,
        transport: ChangeFeedTransport,
    ):
        self.settings = settings
        self.engine = engine
        self.session_factory = session_factory
        self.redis = redis
        self.transport = transport
        self.store = RemoteStore(
            session_factory,
            change_feed=transport,
            schema_name=settings.REALTIME_SCHEMA,
            permission_marker=settings.PERMISSION_DENIED_MARKER,
        )
        self.views = ViewManager()
        self.auth = AuthService(self.store, redis, settings)
        self.preferences = PreferenceService(redis, settings.DEFAULT_THEME)

    @classmethod
    async def create(
        cls,
        settings: Optional[Settings] = None,
        redis: Optional[RedisService] = None,
        transport: Optional[ChangeFeedTransport] = None,
    ) -> "AppContext":
        settings = settings or get_settings()
        engine = create_engine_from_settings(settings)
        await init_db(engine)

        redis = redis or RedisService(url=settings.redis_url)
        if transport is None:
            if settings.REALTIME_BACKEND == "memory":
                transport = InMemoryChangeFeed()
            else:
                transport = RedisChangeFeed(redis.redis, prefix=settings.REALTIME_CHANNEL_PREFIX)

        logger.info(f"Application context ready (realtime backend: {transport.__class__.__name__})")
        return cls(settings, engine, create_session_factory(engine), redis, transport)

    def change_feed(self) -> ChangeFeed:
        """A fresh subscription registry for one view"""
        return ChangeFeed(self.transport, schema_name=self.settings.REALTIME_SCHEMA)

    async def close(self) -> None:
        await self.views.close_all()
        await self.transport.close()
        try:
            await self.redis.close()
        except Exception as e:
            logger.warning(f"Error closing Redis connection: {e}")
        await close_db(self.engine)
        logger.info("Application context closed")
