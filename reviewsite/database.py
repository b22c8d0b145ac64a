"""Async database engine lifecycle and session dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import SiteSettings, settings


class Database:
    """Owns the engine (and its bounded pool) for the lifetime of the app.

    Built in the app lifespan and disposed on shutdown; handlers reach it
    through ``request.app.state.db``.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self._session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    @classmethod
    def from_settings(cls, cfg: SiteSettings | None = None) -> Database | None:
        cfg = cfg or settings
        if not cfg.db_configured:
            return None
        kwargs: dict = {"echo": cfg.echo_sql, "pool_pre_ping": True}
        if not cfg.database_url.startswith("sqlite"):
            kwargs["pool_size"] = cfg.database_pool_size
            kwargs["max_overflow"] = 0
        return cls(create_async_engine(cfg.database_url, **kwargs))

    @classmethod
    def from_engine(cls, engine: AsyncEngine) -> Database:
        """Wrap a pre-built engine (useful for testing)."""
        return cls(engine)

    @property
    def is_sqlite(self) -> bool:
        return self.engine.dialect.name == "sqlite"

    def session(self) -> AsyncSession:
        return self._session()

    async def create_tables(self) -> None:
        from .models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


def _app_db(request: Request) -> Database | None:
    return getattr(request.app.state, "db", None)


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields an async session.

    Responds 500 when the database is not configured.
    """
    database = _app_db(request)
    if database is None:
        raise HTTPException(status_code=500, detail=settings.db_env_error or "Database is not initialized")
    async with database.session() as session:
        yield session


async def get_optional_db(request: Request) -> AsyncIterator[AsyncSession | None]:
    """Like ``get_db`` but yields ``None`` when unconfigured (read paths degrade)."""
    database = _app_db(request)
    if database is None:
        yield None
        return
    async with database.session() as session:
        yield session
