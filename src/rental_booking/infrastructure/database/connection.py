"""Async engine and session lifecycle for the booking store."""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.rental_booking.infrastructure.database.models import Base
from src.rental_booking.infrastructure.logging import get_logger

logger = get_logger(__name__)


def to_async_url(database_url: str) -> str:
    """Pick the async driver for bare ``postgresql://`` and ``sqlite://`` URLs."""
    url = make_url(database_url)
    if url.drivername == "postgresql":
        url = url.set(drivername="postgresql+asyncpg")
    elif url.drivername == "sqlite":
        url = url.set(drivername="sqlite+aiosqlite")
    return url.render_as_string(hide_password=False)


class DatabaseManager:
    """Owns the async engine; hands out one session per unit of work.

    Pool sizing only applies to server databases; SQLite (used by the
    repository tests) keeps SQLAlchemy's default pool for its driver.
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 10,
        max_overflow: int = 20,
        pool_pre_ping: bool = True
    ):
        self._database_url = to_async_url(database_url)
        self._engine_options: Dict[str, Any] = {"echo": echo}
        if not self._database_url.startswith("sqlite"):
            self._engine_options.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping,
            )
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def database_url(self) -> str:
        return self._database_url

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    async def connect(self) -> None:
        """Create the engine and session factory; a no-op when already connected."""
        if self._engine is not None:
            return
        self._engine = create_async_engine(self._database_url, **self._engine_options)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)
        logger.info(f"Database engine created for {make_url(self._database_url).render_as_string()}")

    async def disconnect(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def create_tables(self) -> None:
        """Create every table of the booking schema that does not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that commits on success and rolls back on error."""
        if self._session_factory is None:
            raise RuntimeError("Database not connected. Call connect() first.")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
