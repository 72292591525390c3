"""Identity database client: async SQLAlchemy engine and sessions.

Repositories open one short-lived session per call through
:meth:`Datastore.session`. Connection-level failures raised inside such a
session surface as :class:`StorageUnavailableError`, so the API answers 503
instead of leaking driver errors. Constraint violations (``IntegrityError``)
pass through untouched; repositories map those themselves.

An in-memory SQLite database lives on a single shared connection
(``StaticPool``). Sessions on it are taken one at a time, otherwise one
session's rollback would undo another's uncommitted work.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, nullcontext
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.exc import DisconnectionError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from wallet_auth.datastore.engines import create_engine
from wallet_auth.datastore.migrations import run_auto_migrate
from wallet_auth.errors.definitions import StorageUnavailableError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from contextlib import AbstractAsyncContextManager

    from wallet_auth.config.settings import DatabaseConfig

logger = logging.getLogger(__name__)

_ERR_NOT_OPEN = "Datastore is not open. Call open() first."


@asynccontextmanager
async def _guarded(
    session: AsyncSession, lock: asyncio.Lock | None
) -> AsyncIterator[AsyncSession]:
    try:
        async with lock if lock is not None else nullcontext(), session:
            yield session
    except (OperationalError, DisconnectionError) as exc:
        logger.error("Identity database unavailable: %s", exc)
        raise StorageUnavailableError("identity database unavailable") from exc


class Datastore:
    """Async datastore holding the identity tables.

    Usage::

        ds = Datastore(db_config)
        await ds.open(create_tables=True)
        async with ds.session() as session:
            ...
        await ds.close()
    """

    def __init__(self, config: DatabaseConfig) -> None:
        self._config = config
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._lock: asyncio.Lock | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Return the underlying async engine.

        Raises:
            RuntimeError: If the datastore is not open.
        """
        if self._engine is None:
            raise RuntimeError(_ERR_NOT_OPEN)
        return self._engine

    @property
    def is_serialized(self) -> bool:
        """True if sessions share one connection and are taken in turn."""
        return self._lock is not None

    @property
    def is_open(self) -> bool:
        """Check if the datastore is open."""
        return self._engine is not None

    async def open(self, *, create_tables: bool = False) -> None:
        """Create the engine and session factory.

        Args:
            create_tables: Create any missing identity tables. Deployments
                that manage the schema with Alembic leave this off.
        """
        self._engine = create_engine(self._config)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)
        if isinstance(self._engine.pool, StaticPool):
            self._lock = asyncio.Lock()
        if create_tables:
            created = await run_auto_migrate(self._engine)
            if created:
                logger.info("Created tables: %s", ", ".join(created))

    async def close(self) -> None:
        """Dispose the engine and release all connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            self._lock = None

    def session(self) -> AbstractAsyncContextManager[AsyncSession]:
        """Return a new session wrapped for use as ``async with``.

        Raises:
            RuntimeError: If the datastore is not open.
        """
        if self._session_factory is None:
            raise RuntimeError(_ERR_NOT_OPEN)
        return _guarded(self._session_factory(), self._lock)

    async def ping(self) -> bool:
        """Run ``SELECT 1``; False if the database cannot be reached."""
        if self._engine is None:
            return False
        try:
            lock = self._lock if self._lock is not None else nullcontext()
            async with lock, self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True
