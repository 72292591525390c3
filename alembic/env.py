"""Alembic environment for the identity tables.

The URL comes from ``alembic.ini`` when set there, otherwise from
``AppConfig`` (``WALLETAUTH_DB__DSN``). Plain ``postgresql://`` and
``sqlite://`` URLs get their async driver filled in the same way the
application does it.
"""

from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from wallet_auth.config.settings import AppConfig
from wallet_auth.datastore.engines import async_url
from wallet_auth.engine.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _url() -> str:
    dsn = config.get_main_option("sqlalchemy.url") or AppConfig().db.dsn
    return async_url(dsn).render_as_string(hide_password=False)


def _configure(**kwargs) -> None:  # type: ignore[no-untyped-def]
    # SQLite cannot ALTER most constraints in place; batch mode rebuilds the table.
    context.configure(
        target_metadata=target_metadata,
        render_as_batch=_url().startswith("sqlite"),
        **kwargs,
    )


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting."""
    _configure(url=_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:  # type: ignore[no-untyped-def]
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Apply migrations over an async connection."""
    connectable = create_async_engine(_url(), poolclass=pool.NullPool)
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
