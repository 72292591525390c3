"""Account service: site accounts that wallets sign in as."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from wallet_auth.engine.models.account import Account
from wallet_auth.engine.models.base import utcnow
from wallet_auth.engine.repository.accounts import AccountRepository
from wallet_auth.errors.definitions import AccountNotFoundError

if TYPE_CHECKING:
    from wallet_auth.engine.client import WalletAuthEngine

logger = logging.getLogger(__name__)


class AccountService:
    """Create, look up and finalize logins for accounts."""

    def __init__(self, engine: WalletAuthEngine) -> None:
        self._engine = engine
        self._repo = AccountRepository(engine.datastore)

    async def create_account(self, username: str) -> Account:
        """Create an active account with *username*."""
        account = await self._repo.create(Account(username=username, active=True))
        logger.info("Created account %d (%s)", account.id, account.username)
        return account

    async def get_account(self, account_id: int) -> Account:
        """Fetch an account by id.

        Raises:
            AccountNotFoundError: If no such account exists.
        """
        account = await self._repo.get_by_id(account_id)
        if account is None:
            raise AccountNotFoundError
        return account

    async def find_by_username(self, username: str) -> Account | None:
        return await self._repo.get_by_username(username)

    async def finalize_login(self, account: Account) -> Account:
        """Record a completed login on *account*."""
        account.last_login_at = utcnow()
        return await self._repo.save(account)

    async def count(self) -> int:
        return await self._repo.count()
