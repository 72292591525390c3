"""EIP-191 personal-message signature verification.

Signatures are 65 bytes ``r || s || v`` encoded as hex. Recovery uses the
``\\x19Ethereum Signed Message:\\n<len>`` prefix, which is what wallets apply
for ``personal_sign``.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from eth_account import Account
from eth_account.messages import encode_defunct

from wallet_auth.errors.definitions import MalformedMessageError
from wallet_auth.eth.address import addresses_equal
from wallet_auth.eth.siwe import parse_siwe_message

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 65

# secp256k1 group order; signatures with s above half of it are malleable (EIP-2).
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N = SECP256K1_N // 2


def decode_signature(signature: object) -> bytes | None:
    """Decode a hex signature into canonical 65 bytes with ``v`` in {27, 28}.

    Returns None if the input is not hex, has the wrong length, carries an
    unknown recovery id, or has a zero or high ``s`` / zero ``r`` value.
    """
    if not isinstance(signature, str):
        return None
    hex_part = signature[2:] if signature[:2] in ("0x", "0X") else signature
    if len(hex_part) != SIGNATURE_LENGTH * 2:
        return None
    try:
        raw = bytes.fromhex(hex_part)
    except ValueError:
        return None

    r = int.from_bytes(raw[:32], "big")
    s = int.from_bytes(raw[32:64], "big")
    v = raw[64]
    if v in (0, 1):
        v += 27
    if v not in (27, 28):
        return None
    if r == 0 or s == 0 or s > SECP256K1_HALF_N:
        return None
    return raw[:64] + bytes([v])


def recover_address(message: str, signature: object) -> str | None:
    """Recover the normalized signer address of a personal message.

    Returns:
        ``0x`` + 40 lowercase hex, or None on any decoding or recovery failure.
    """
    raw = decode_signature(signature)
    if raw is None or not isinstance(message, str):
        return None
    try:
        signer = Account.recover_message(encode_defunct(text=message), signature=raw)
    except Exception:  # noqa: BLE001 - any recovery failure means "no signer"
        logger.debug("signature recovery failed", exc_info=True)
        return None
    return signer.lower()


class SignatureVerifier:
    """Verify that a SIWE message was signed by the claimed wallet.

    Args:
        chain_id: Expected EIP-155 chain id; messages carrying another one are
            rejected. None disables the check.
        domain: Expected SIWE domain; empty accepts any domain.
        now: Clock returning an aware UTC datetime, used for the
            ``Not Before`` / ``Expiration Time`` window.
    """

    def __init__(
        self,
        *,
        chain_id: int | None = None,
        domain: str = "",
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._chain_id = chain_id
        self._domain = domain
        self._now = now or (lambda: datetime.now(tz=UTC))

    def recover_address(self, message: str, signature: str) -> str | None:
        """See :func:`recover_address`."""
        return recover_address(message, signature)

    def verify(self, message: str, signature: str, claimed_address: str) -> bool:
        """Return True only if every structural and cryptographic check passes.

        Never raises; malformed input yields False.
        """
        try:
            parsed = parse_siwe_message(message)
        except MalformedMessageError as exc:
            logger.debug("rejecting malformed message: %s", exc.message)
            return False

        if not addresses_equal(parsed.address, claimed_address):
            logger.debug("message address %s differs from claimed address", parsed.address)
            return False
        if (
            self._chain_id is not None
            and parsed.chain_id is not None
            and parsed.chain_id != self._chain_id
        ):
            logger.debug("chain id %s does not match %s", parsed.chain_id, self._chain_id)
            return False
        if self._domain and parsed.domain != self._domain:
            logger.debug("domain %s does not match %s", parsed.domain, self._domain)
            return False
        if not parsed.is_within_window(self._now()):
            logger.debug("message outside its validity window")
            return False

        signer = recover_address(message, signature)
        return signer is not None and addresses_equal(signer, claimed_address)

    @staticmethod
    def extract_nonce(message: str) -> str | None:
        """Return the nonce embedded in a SIWE message, or None if malformed."""
        try:
            return parse_siwe_message(message).nonce
        except MalformedMessageError:
            return None
