"""Async engine factory for the identity database.

``db.dsn`` may name a plain backend (``postgresql://...``, ``sqlite:///...``);
the async driver for it is filled in here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from sqlalchemy.engine import URL

    from wallet_auth.config.settings import DatabaseConfig

ASYNC_DRIVERS = {
    "sqlite": "aiosqlite",
    "postgresql": "asyncpg",
}


def async_url(dsn: str) -> URL:
    """Parse *dsn*, substituting the async driver when none is given.

    Raises:
        ValueError: If the backend is neither SQLite nor PostgreSQL.
    """
    url = make_url(dsn)
    backend = url.get_backend_name()
    if backend not in ASYNC_DRIVERS:
        msg = f"Unsupported database backend: {backend}"
        raise ValueError(msg)
    if url.drivername == backend:
        url = url.set(drivername=f"{backend}+{ASYNC_DRIVERS[backend]}")
    return url


def create_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create an async SQLAlchemy engine from database configuration."""
    url = async_url(config.dsn)
    kwargs: dict[str, Any] = {"echo": config.debug_sql}

    if url.get_backend_name() == "sqlite":
        # One shared connection, otherwise every checkout sees an empty database
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_size"] = config.max_idle_connections
        kwargs["max_overflow"] = config.max_open_connections - config.max_idle_connections
        kwargs["pool_pre_ping"] = True

    return create_async_engine(url, **kwargs)
