"""Accounts repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from wallet_auth.engine.models.account import Account
from wallet_auth.errors.definitions import DuplicateUsernameError

if TYPE_CHECKING:
    from wallet_auth.datastore.client import Datastore


class AccountRepository:
    """Data access layer for site accounts."""

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def create(self, account: Account) -> Account:
        """Persist a new account.

        Raises:
            DuplicateUsernameError: If the username is already taken.
        """
        async with self._ds.session() as session:
            session.add(account)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateUsernameError(account.username) from exc
            await session.refresh(account)
        return account

    async def get_by_id(self, account_id: int) -> Account | None:
        """Find account by primary key."""
        async with self._ds.session() as session:
            return await session.get(Account, account_id)

    async def get_by_username(self, username: str) -> Account | None:
        """Find account by its unique username."""
        async with self._ds.session() as session:
            stmt = select(Account).where(Account.username == username)
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def save(self, account: Account) -> Account:
        """Flush changes made to a (possibly detached) account."""
        async with self._ds.session() as session:
            session.add(account)
            await session.commit()
            await session.refresh(account)
        return account

    async def count(self) -> int:
        """Total number of accounts."""
        async with self._ds.session() as session:
            result = await session.execute(select(func.count()).select_from(Account))
            return int(result.scalar_one())

    async def delete_by_id(self, account_id: int) -> bool:
        """Delete an account by ID. Returns True if deleted."""
        async with self._ds.session() as session:
            stmt = delete(Account).where(Account.id == account_id)
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0  # type: ignore[union-attr]
