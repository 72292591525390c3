"""Wallet address validation and normalization.

The canonical (normalized) form of an address is ``0x`` followed by 40
lowercase hex characters. Everything that is stored or looked up uses it.
"""

from __future__ import annotations

import re

from eth_utils import to_checksum_address as _checksum

from wallet_auth.errors.definitions import InvalidAddressError

ADDRESS_LENGTH = 42
_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")


def validate_address(raw: object) -> bool:
    """Return True if *raw* is ``0x`` followed by exactly 40 hex characters.

    The whole string must match, so surrounding whitespace or a trailing
    newline makes the address invalid.
    """
    return isinstance(raw, str) and _ADDRESS_RE.fullmatch(raw) is not None


def normalize_address(raw: object) -> str:
    """Return the lowercase canonical form of a valid address.

    Raises:
        InvalidAddressError: If *raw* is not a valid address.
    """
    if not validate_address(raw):
        raise InvalidAddressError
    assert isinstance(raw, str)
    return raw.lower()


def to_checksum_address(raw: object) -> str:
    """EIP-55 mixed-case rendering of an address, for display only.

    Raises:
        InvalidAddressError: If *raw* is not a valid address.
    """
    return _checksum(normalize_address(raw))


def addresses_equal(a: object, b: object) -> bool:
    """Compare two addresses by their normalized form; False if either is invalid."""
    if not (validate_address(a) and validate_address(b)):
        return False
    return normalize_address(a) == normalize_address(b)
