"""Async database manager for the audit store."""

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tala_audit.common.config import TalaSettings, get_settings
from tala_audit.common.models import Base

# Import all model modules so Base.metadata is complete for create_all().
import tala_audit.users.models  # noqa: F401
import tala_audit.audit.models  # noqa: F401


def _engine_options(url: str) -> dict:
    """SQLite needs a shared connection in memory and an existing directory on disk."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return {}
    database = parsed.database
    if not database or database == ":memory:":
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    Path(database).parent.mkdir(parents=True, exist_ok=True)
    return {}


class DatabaseManager:
    """Owns the engine behind the ledger store.

    A session commits once when the block exits cleanly, so an append either
    persists its whole record or nothing.
    """

    def __init__(self, settings: TalaSettings | None = None):
        self._settings = settings or get_settings()
        self.engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def init(self) -> None:
        url = self._settings.db_url
        self.engine = create_async_engine(url, echo=False, **_engine_options(url))
        self._session_factory = async_sessionmaker(
            self.engine, expire_on_commit=False
        )

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        if self._session_factory is None:
            raise RuntimeError("DatabaseManager not initialized, call init() first")
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Create the users and audit_logs tables (tests and first dev run)."""
        if self.engine is None:
            raise RuntimeError("DatabaseManager not initialized, call init() first")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self.engine = None
            self._session_factory = None
