"""Tests for ORM models."""

from __future__ import annotations

from wallet_auth.engine.models import ALL_MODELS, Account, Base, WalletIdentity


def test_all_models_registered() -> None:
    assert ALL_MODELS == [Account, WalletIdentity]
    assert {"accounts", "wallet_identities"} <= set(Base.metadata.tables)


def test_wallet_address_is_unique() -> None:
    column = WalletIdentity.__table__.c.wallet_address
    assert column.unique is True
    assert column.type.length == 42


def test_account_username_is_unique() -> None:
    assert Account.__table__.c.username.unique is True


def test_account_id_nullable() -> None:
    assert WalletIdentity.__table__.c.account_id.nullable is True


def test_repr() -> None:
    identity = WalletIdentity(id=1, wallet_address="0x" + "0" * 40, account_id=None, active=True)
    assert "0x" + "0" * 40 in repr(identity)
    assert "alice" in repr(Account(id=2, username="alice"))
