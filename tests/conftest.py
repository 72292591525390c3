"""Shared test fixtures for py-wallet-auth test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from eth_account import Account as EthAccount
from eth_account.messages import encode_defunct

from wallet_auth.config.settings import (
    AppConfig,
    AuthConfig,
    CacheConfig,
    CacheEngine,
    DatabaseConfig,
    DatabaseEngine,
    Network,
    SessionConfig,
    TaskConfig,
)
from wallet_auth.eth.address import to_checksum_address
from wallet_auth.eth.siwe import SiweMessage

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from eth_account.signers.local import LocalAccount

    from wallet_auth.engine.client import WalletAuthEngine

# Well-known development keys (Hardhat accounts #0 and #1). Never fund these.
WALLET_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
OTHER_WALLET_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"

ADMIN_TOKEN = "test-admin-token"


def build_message(address: str, nonce: str, **overrides: object) -> str:
    """Render a SIWE message for *address* carrying *nonce*."""
    fields: dict = {
        "domain": "example.com",
        "address": to_checksum_address(address),
        "statement": "Sign in to example.com with your wallet.",
        "uri": "https://example.com/login",
        "version": "1",
        "chain_id": 1,
        "nonce": nonce,
        "issued_at": "2026-01-01T00:00:00Z",
    }
    fields.update(overrides)
    return SiweMessage(**fields).prepare()


def sign(wallet: LocalAccount, message: str) -> str:
    """personal_sign *message* with *wallet*; returns 0x-prefixed hex."""
    signed = wallet.sign_message(encode_defunct(text=message))
    return "0x" + bytes(signed.signature).hex()


@pytest.fixture
def app_config() -> AppConfig:
    """Provide a test AppConfig with safe defaults."""
    return AppConfig(
        debug=True,
        admin_token=ADMIN_TOKEN,
        db=DatabaseConfig(
            engine=DatabaseEngine.SQLITE,
            dsn="sqlite+aiosqlite:///:memory:",
        ),
        cache=CacheConfig(engine=CacheEngine.MEMORY),
        auth=AuthConfig(network=Network.MAINNET),
        session=SessionConfig(secret_key="test-session-secret"),
        task=TaskConfig(enabled=False),
    )


@pytest.fixture
async def engine(app_config: AppConfig) -> AsyncIterator[WalletAuthEngine]:
    """Create an initialized engine with in-memory SQLite and cache."""
    from wallet_auth.engine.client import WalletAuthEngine

    eng = WalletAuthEngine(app_config)
    await eng.initialize()
    yield eng
    await eng.close()


@pytest.fixture
def wallet() -> LocalAccount:
    return EthAccount.from_key(WALLET_KEY)


@pytest.fixture
def other_wallet() -> LocalAccount:
    return EthAccount.from_key(OTHER_WALLET_KEY)


@pytest.fixture
def siwe() -> Callable[..., str]:
    """The SIWE message builder, as a fixture."""
    return build_message


@pytest.fixture
def signer() -> Callable[[LocalAccount, str], str]:
    """The personal_sign helper, as a fixture."""
    return sign


@pytest.fixture
def test_client(app_config: AppConfig):
    """Provide a FastAPI TestClient with the lifespan (engine) running."""
    from fastapi.testclient import TestClient

    from wallet_auth.api.app import create_app

    app = create_app(config=app_config)
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
