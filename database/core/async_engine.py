"""
Async database engine with connection pooling.

Features:
- Async SQLAlchemy with asyncpg (PostgreSQL) or aiosqlite (SQLite) drivers
- Connection pooling with configurable size (NullPool for SQLite and tests)
- Lazy creation so tests can rebind the engine before first use
- Health checks
"""

from typing import AsyncGenerator, Optional
import logging

from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import text, event

from config import settings

logger = logging.getLogger(__name__)


class AsyncDatabaseEngine:
    """Async database engine manager with connection pooling."""

    def __init__(self, url: Optional[str] = None):
        self._url = url
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None

    @property
    def url(self) -> str:
        return self._url or settings.async_database_url

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def create_engine(self) -> AsyncEngine:
        """Create async database engine with pool settings for the backend."""
        if self.is_sqlite or settings.testing:
            engine = create_async_engine(
                self.url,
                poolclass=NullPool,
                echo=settings.db_echo,
            )
        else:
            engine = create_async_engine(
                self.url,
                poolclass=AsyncAdaptedQueuePool,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_recycle=settings.db_pool_recycle,
                pool_pre_ping=settings.db_pool_pre_ping,
                echo=settings.db_echo,
            )

        self._register_events(engine.sync_engine)
        return engine

    def _register_events(self, engine):
        """Register SQLAlchemy event listeners."""

        if self.is_sqlite:
            @event.listens_for(engine, "connect")
            def enable_sqlite_foreign_keys(dbapi_conn, connection_record):
                """SQLite only enforces ON DELETE CASCADE with this pragma."""
                cursor = dbapi_conn.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        @event.listens_for(engine, "connect")
        def receive_connect(dbapi_conn, connection_record):
            """Track new connections."""
            if settings.debug:
                logger.debug("Database: New connection established")

    def configure(self, url: str) -> None:
        """Point the manager at another database; the next use builds a new engine."""
        self._url = url
        self._engine = None
        self._session_factory = None

    @property
    def engine(self) -> AsyncEngine:
        """Get or create async engine."""
        if self._engine is None:
            self._engine = self.create_engine()
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker:
        """Get or create session factory."""
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    async def init_db(self) -> None:
        """Create all tables that do not exist yet."""
        from database.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialized")

    async def health_check(self) -> bool:
        """Check database connection health."""
        try:
            async with self.session_factory() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database health check failed: {e}")
            return False

    async def close(self):
        """Close database engine and cleanup connections."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database: Engine closed and connections cleaned up")


# Global async database engine
async_db_engine = AsyncDatabaseEngine()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for async database sessions.

    Operations commit their own unit of work; anything left open when the
    request fails is rolled back here.

    Usage:
        @router.get("/users")
        async def get_users(session: AsyncSession = Depends(get_session)):
            result = await session.execute(select(User))
            return result.scalars().all()
    """
    async with async_db_engine.session_factory() as session:
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    await async_db_engine.init_db()


async def close_db() -> None:
    await async_db_engine.close()
