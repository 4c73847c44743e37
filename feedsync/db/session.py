from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool, NullPool
from feedsync.config import Settings
import logging

logger = logging.getLogger(__name__)

def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Build the async engine for the configured environment"""
    database_url = settings.database_url

    if "sqlite" in database_url:
        # SQLite configuration for testing
        engine = create_async_engine(
            database_url,
            echo=settings.DEBUG,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if ":memory:" in database_url else NullPool,
        )
        _enable_sqlite_foreign_keys(engine)
    else:
        # PostgreSQL configuration for production/development
        engine = create_async_engine(
            database_url,
            echo=settings.DEBUG,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
    return engine

def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    # Cascades from posts to comments and likes rely on this
    @event.listens_for(engine.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

def create_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create async session factory"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

async def init_db(engine: AsyncEngine) -> None:
    """Initialize database (create tables and counter triggers)"""
    from feedsync.models import Base
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized successfully")

async def close_db(engine: AsyncEngine) -> None:
    """Close database connections"""
    await engine.dispose()
    logger.info("Database connections closed")
