"""Schema bootstrap for development and tests.

Production deployments run the Alembic scripts under ``alembic/versions``
and set ``db.auto_migrate`` to false.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import inspect

from wallet_auth.engine.models import Base

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection
    from sqlalchemy.ext.asyncio import AsyncEngine


def _existing_tables(conn: Connection) -> set[str]:
    return set(inspect(conn).get_table_names())


async def run_auto_migrate(engine: AsyncEngine) -> list[str]:
    """Create the identity tables that do not exist yet.

    Returns:
        Names of the tables this call created, in dependency order.
    """
    async with engine.begin() as conn:
        before = await conn.run_sync(_existing_tables)
        await conn.run_sync(Base.metadata.create_all)
    return [t.name for t in Base.metadata.sorted_tables if t.name not in before]


async def drop_all_tables(engine: AsyncEngine) -> None:
    """Drop the identity tables. Test utility."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
