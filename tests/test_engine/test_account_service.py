"""Tests for AccountService."""

from __future__ import annotations

import pytest

from wallet_auth.engine.client import WalletAuthEngine
from wallet_auth.errors.definitions import AccountNotFoundError, DuplicateUsernameError


class TestAccountService:
    async def test_create_and_get(self, engine: WalletAuthEngine) -> None:
        created = await engine.account_service.create_account("alice")
        fetched = await engine.account_service.get_account(created.id)
        assert fetched.username == "alice"
        assert fetched.active is True
        assert fetched.last_login_at is None

    async def test_get_missing(self, engine: WalletAuthEngine) -> None:
        with pytest.raises(AccountNotFoundError):
            await engine.account_service.get_account(999)

    async def test_duplicate_username(self, engine: WalletAuthEngine) -> None:
        await engine.account_service.create_account("alice")
        with pytest.raises(DuplicateUsernameError) as exc_info:
            await engine.account_service.create_account("alice")
        assert exc_info.value.status_code == 409
        assert exc_info.value.username == "alice"
        assert await engine.account_service.count() == 1

    async def test_find_by_username(self, engine: WalletAuthEngine) -> None:
        assert await engine.account_service.find_by_username("bob") is None
        created = await engine.account_service.create_account("bob")
        found = await engine.account_service.find_by_username("bob")
        assert found is not None
        assert found.id == created.id

    async def test_finalize_login(self, engine: WalletAuthEngine) -> None:
        account = await engine.account_service.create_account("carol")
        finalized = await engine.account_service.finalize_login(account)
        assert finalized.last_login_at is not None
        reloaded = await engine.account_service.get_account(account.id)
        assert reloaded.last_login_at is not None

    async def test_count(self, engine: WalletAuthEngine) -> None:
        assert await engine.account_service.count() == 0
        await engine.account_service.create_account("dave")
        assert await engine.account_service.count() == 1
