"""Wallet identities repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from wallet_auth.engine.models.account import Account
from wallet_auth.engine.models.wallet_identity import WalletIdentity
from wallet_auth.errors.definitions import DuplicateAddressError

if TYPE_CHECKING:
    from wallet_auth.datastore.client import Datastore


class WalletIdentityRepository:
    """Data access layer for wallet identities.

    Addresses passed in must already be normalized; the repository does no
    address handling of its own.
    """

    def __init__(self, datastore: Datastore) -> None:
        self._ds = datastore

    async def create(self, identity: WalletIdentity) -> WalletIdentity:
        """Persist a new wallet identity.

        Raises:
            DuplicateAddressError: If the address is already bound.
        """
        async with self._ds.session() as session:
            session.add(identity)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateAddressError(identity.wallet_address) from exc
            await session.refresh(identity)
        return identity

    async def create_with_account(self, wallet_address: str, username: str) -> WalletIdentity:
        """Insert the backing account and the identity in one transaction.

        An account that already holds *username* is reused rather than
        duplicated. If the identity insert hits the unique index the whole
        transaction is rolled back, so no orphan account is left behind.

        Raises:
            DuplicateAddressError: If the address is already bound.
        """
        async with self._ds.session() as session:
            try:
                result = await session.execute(select(Account).where(Account.username == username))
                account = result.scalar_one_or_none()
                if account is None:
                    account = Account(username=username)
                    session.add(account)
                    await session.flush()

                identity = WalletIdentity(wallet_address=wallet_address, account_id=account.id)
                session.add(identity)
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateAddressError(wallet_address) from exc
            await session.refresh(identity)
        return identity

    async def get_by_id(self, identity_id: int) -> WalletIdentity | None:
        """Find identity by primary key."""
        async with self._ds.session() as session:
            return await session.get(WalletIdentity, identity_id)

    async def get_by_address(self, wallet_address: str) -> WalletIdentity | None:
        """Find identity by normalized wallet address."""
        async with self._ds.session() as session:
            stmt = select(WalletIdentity).where(WalletIdentity.wallet_address == wallet_address)
            result = await session.execute(stmt)
            return result.scalar_one_or_none()

    async def list_by_account(self, account_id: int) -> list[WalletIdentity]:
        """All identities bound to an account."""
        async with self._ds.session() as session:
            stmt = (
                select(WalletIdentity)
                .where(WalletIdentity.account_id == account_id)
                .order_by(WalletIdentity.id)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def list_all(
        self,
        *,
        page: int = 1,
        page_size: int = 50,
    ) -> list[WalletIdentity]:
        """List identities with pagination, newest first."""
        async with self._ds.session() as session:
            stmt = (
                select(WalletIdentity)
                .order_by(WalletIdentity.id.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def save(self, identity: WalletIdentity) -> WalletIdentity:
        """Flush changes made to a (possibly detached) identity."""
        async with self._ds.session() as session:
            session.add(identity)
            await session.commit()
            await session.refresh(identity)
        return identity

    async def count(self, *, active: bool | None = None) -> int:
        """Count identities, optionally only active or only revoked ones."""
        async with self._ds.session() as session:
            stmt = select(func.count()).select_from(WalletIdentity)
            if active is not None:
                stmt = stmt.where(WalletIdentity.active.is_(active))
            result = await session.execute(stmt)
            return int(result.scalar_one())

    async def delete_by_id(self, identity_id: int) -> bool:
        """Delete an identity by ID. Returns True if deleted."""
        async with self._ds.session() as session:
            stmt = delete(WalletIdentity).where(WalletIdentity.id == identity_id)
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0  # type: ignore[union-attr]
