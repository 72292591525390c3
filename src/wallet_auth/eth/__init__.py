"""Ethereum primitives: addresses, SIWE messages and signatures."""

from wallet_auth.eth.address import (
    addresses_equal,
    normalize_address,
    to_checksum_address,
    validate_address,
)
from wallet_auth.eth.signature import SignatureVerifier, recover_address
from wallet_auth.eth.siwe import SiweMessage, parse_siwe_message

__all__ = [
    "SignatureVerifier",
    "SiweMessage",
    "addresses_equal",
    "normalize_address",
    "parse_siwe_message",
    "recover_address",
    "to_checksum_address",
    "validate_address",
]
