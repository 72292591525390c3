"""Wallet identity service: binds wallet addresses to accounts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from wallet_auth.engine.models.base import utcnow
from wallet_auth.engine.repository.wallet_identities import WalletIdentityRepository
from wallet_auth.errors.definitions import (
    DuplicateAddressError,
    DuplicateUsernameError,
    StorageUnavailableError,
    WalletNotFoundError,
    WalletRevokedError,
)
from wallet_auth.eth.address import normalize_address

if TYPE_CHECKING:
    from wallet_auth.engine.client import WalletAuthEngine
    from wallet_auth.engine.models.account import Account
    from wallet_auth.engine.models.wallet_identity import WalletIdentity

logger = logging.getLogger(__name__)


class WalletIdentityService:
    """Resolve a verified wallet address to an account, creating one if needed.

    The storage layer's unique index on ``wallet_address`` is the arbiter
    when two first logins for the same wallet race: the loser gets
    :class:`DuplicateAddressError` and reloads the winner's record, so both
    callers end up with the same account.
    """

    def __init__(self, engine: WalletAuthEngine) -> None:
        self._engine = engine
        self._repo = WalletIdentityRepository(engine.datastore)

    def username_for(self, wallet_address: str) -> str:
        """Deterministic username: configured prefix plus the 40 lowercase hex chars."""
        prefix = self._engine.config.auth.username_prefix
        return f"{prefix}{normalize_address(wallet_address)[2:]}"

    # ------------------------------------------------------------------
    # Binding
    # ------------------------------------------------------------------

    async def load_by_address(self, wallet_address: str) -> WalletIdentity | None:
        """Return the identity bound to *wallet_address*, if any."""
        return await self._repo.get_by_address(normalize_address(wallet_address))

    async def create_for_address(self, wallet_address: str) -> WalletIdentity:
        """Create the account and identity for a first-time wallet.

        Raises:
            DuplicateAddressError: If an identity for the address already exists.
        """
        address = normalize_address(wallet_address)
        identity = await self._repo.create_with_account(address, self.username_for(address))
        logger.info("Bound wallet %s to new account %s", address, identity.account_id)
        return identity

    async def login_or_create(self, wallet_address: str) -> Account:
        """Resolve the account for an authenticated wallet.

        Creates the identity on first use, attaches an account to an unowned
        identity, and refreshes ``last_used_at``.

        Raises:
            WalletRevokedError: If the identity or its account is inactive.
            StorageUnavailableError: If the identity or account vanished
                after a duplicate-key conflict.
        """
        address = normalize_address(wallet_address)
        identity = await self._repo.get_by_address(address)
        if identity is None:
            try:
                identity = await self.create_for_address(address)
            except DuplicateAddressError:
                logger.info("Concurrent first login for %s, reloading winner", address)
                identity = await self._repo.get_by_address(address)
                if identity is None:
                    msg = f"wallet identity for {address} missing after duplicate-key conflict"
                    raise StorageUnavailableError(msg) from None

        if not identity.active:
            raise WalletRevokedError

        accounts = self._engine.account_service
        if identity.account_id is None:
            username = self.username_for(address)
            account = await accounts.find_by_username(username)
            if account is None:
                account = await self._create_or_reload_account(username)
            identity.account_id = account.id
            logger.info("Attached account %d to unowned wallet %s", account.id, address)
        else:
            account = await accounts.get_account(identity.account_id)
            if not account.active:
                raise WalletRevokedError("Account disabled")

        identity.last_used_at = utcnow()
        await self._repo.save(identity)
        return account

    async def _create_or_reload_account(self, username: str) -> Account:
        """Create the account for *username*, or load it if a concurrent login won."""
        accounts = self._engine.account_service
        try:
            return await accounts.create_account(username)
        except DuplicateUsernameError:
            logger.info("Concurrent account creation for %s, reloading winner", username)
            account = await accounts.find_by_username(username)
            if account is None:
                msg = f"account {username} missing after duplicate-key conflict"
                raise StorageUnavailableError(msg) from None
            return account

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    async def get(self, wallet_address: str) -> WalletIdentity:
        """Fetch the identity for an address.

        Raises:
            WalletNotFoundError: If the address is not bound.
        """
        identity = await self.load_by_address(wallet_address)
        if identity is None:
            raise WalletNotFoundError
        return identity

    async def set_active(self, wallet_address: str, active: bool) -> WalletIdentity:
        """Revoke or re-activate a wallet."""
        identity = await self.get(wallet_address)
        identity.active = active
        identity = await self._repo.save(identity)
        logger.info("Wallet %s %s", identity.wallet_address, "activated" if active else "revoked")
        return identity

    async def list_identities(self, *, page: int = 1, page_size: int = 50) -> list[WalletIdentity]:
        return await self._repo.list_all(page=page, page_size=page_size)

    async def list_for_account(self, account_id: int) -> list[WalletIdentity]:
        return await self._repo.list_by_account(account_id)

    async def remove(self, wallet_address: str) -> None:
        """Unbind a wallet. Its account is kept.

        Raises:
            WalletNotFoundError: If the address is not bound.
        """
        identity = await self.get(wallet_address)
        await self._repo.delete_by_id(identity.id)
        logger.info("Removed wallet %s", identity.wallet_address)

    async def count(self, *, active: bool | None = None) -> int:
        return await self._repo.count(active=active)
