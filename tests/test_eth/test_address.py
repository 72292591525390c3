"""Tests for wallet address validation and normalization."""

from __future__ import annotations

import pytest
from eth_account import Account as EthAccount

from wallet_auth.errors.definitions import InvalidAddressError
from wallet_auth.eth.address import (
    addresses_equal,
    normalize_address,
    to_checksum_address,
    validate_address,
)

MIXED = "0x71C7656EC7ab88b098defB751B7401B5f6d8976F"
LOWER = "0x71c7656ec7ab88b098defb751b7401b5f6d8976f"


class TestValidateAddress:
    @pytest.mark.parametrize("raw", [MIXED, LOWER, LOWER.upper().replace("0X", "0x")])
    def test_valid(self, raw: str) -> None:
        assert validate_address(raw) is True

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "0x",
            MIXED[2:],  # no prefix
            "0X" + MIXED[2:],  # uppercase prefix
            MIXED[:-1],  # 39 hex chars
            MIXED + "a",  # 41 hex chars
            "0x" + "g" * 40,
            MIXED + "\n",
            " " + MIXED,
            MIXED + " ",
            None,
            1234,
            b"0x71c7656ec7ab88b098defb751b7401b5f6d8976f",
        ],
    )
    def test_invalid(self, raw: object) -> None:
        assert validate_address(raw) is False


class TestNormalizeAddress:
    def test_lowercases(self) -> None:
        assert normalize_address(MIXED) == LOWER

    def test_idempotent(self) -> None:
        assert normalize_address(normalize_address(MIXED)) == normalize_address(MIXED)

    def test_case_insensitive(self) -> None:
        upper = "0x" + MIXED[2:].upper()
        assert normalize_address(upper) == normalize_address(MIXED)

    @pytest.mark.parametrize("raw", ["", "0x123", MIXED + "\n", None])
    def test_invalid_raises(self, raw: object) -> None:
        with pytest.raises(InvalidAddressError):
            normalize_address(raw)


class TestChecksum:
    def test_matches_eth_account(self) -> None:
        account = EthAccount.create()
        assert to_checksum_address(account.address.lower()) == account.address

    def test_invalid_raises(self) -> None:
        with pytest.raises(InvalidAddressError):
            to_checksum_address("nope")


class TestAddressesEqual:
    def test_equal_ignoring_case(self) -> None:
        assert addresses_equal(MIXED, LOWER)

    def test_different(self) -> None:
        assert not addresses_equal(LOWER, "0x" + "0" * 40)

    def test_invalid_never_equal(self) -> None:
        assert not addresses_equal("junk", "junk")
