"""Nonce service: single-use, address-bound, expiring sign-in challenges."""

from __future__ import annotations

import json
import logging
import secrets
import time
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from wallet_auth.errors.definitions import NonceAddressMismatchError, NonceNotFoundError
from wallet_auth.eth.address import normalize_address

if TYPE_CHECKING:
    from collections.abc import Callable

    from wallet_auth.engine.client import WalletAuthEngine

logger = logging.getLogger(__name__)

# 32 random bytes -> 43 URL-safe characters.
TOKEN_BYTES = 32


@dataclass(frozen=True)
class Nonce:
    """An issued nonce, bound to one normalized wallet address."""

    token: str
    wallet_address: str
    issued_at: float
    ttl: int

    @property
    def expires_at(self) -> float:
        return self.issued_at + self.ttl

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def to_json(self) -> str:
        """Serialize deterministically; consume() compares the stored text byte for byte."""
        return json.dumps(asdict(self), sort_keys=True, separators=(",", ":"))

    @classmethod
    def from_json(cls, raw: str) -> Nonce:
        data = json.loads(raw)
        return cls(
            token=data["token"],
            wallet_address=data["wallet_address"],
            issued_at=float(data["issued_at"]),
            ttl=int(data["ttl"]),
        )


class NonceService:
    """Issue, look up, validate and consume nonces.

    Nonces live in the engine cache under ``<prefix>:nonce:<token>`` with a
    cache TTL equal to their lifetime. Expiry is additionally checked at
    lookup time against *clock*, so correctness does not depend on the cache
    evicting on time.

    A nonce presented with the wrong address is rejected but left in place:
    it stays valid for the address it was issued to until it expires.
    """

    KEY_NAMESPACE = "nonce"

    def __init__(
        self,
        engine: WalletAuthEngine,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._engine = engine
        self._clock = clock

    @property
    def lifetime(self) -> int:
        """Configured nonce lifetime in seconds."""
        return self._engine.config.auth.nonce_lifetime

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def issue(self, wallet_address: str) -> Nonce:
        """Create and store a fresh nonce for *wallet_address*.

        Raises:
            InvalidAddressError: If the address is malformed.
        """
        address = normalize_address(wallet_address)
        nonce = Nonce(
            token=secrets.token_urlsafe(TOKEN_BYTES),
            wallet_address=address,
            issued_at=self._clock(),
            ttl=self.lifetime,
        )
        await self._engine.cache.set(self._key(nonce.token), nonce.to_json(), ttl=nonce.ttl)
        if self._engine.metrics is not None:
            self._engine.metrics.record_nonce_issued()
        logger.debug("Issued nonce for %s (ttl=%ds)", address, nonce.ttl)
        return nonce

    async def get(self, token: str) -> Nonce | None:
        """Return the live nonce for *token*, or None if unknown or expired.

        An expired record found in the cache is deleted on the way out.
        """
        if not token:
            return None
        key = self._key(token)
        raw = await self._engine.cache.get(key)
        if raw is None:
            return None
        try:
            nonce = Nonce.from_json(raw)
        except (ValueError, KeyError, TypeError):
            logger.warning("Dropping unreadable nonce record %s", key)
            await self._engine.cache.delete(key)
            return None
        if nonce.is_expired(self._clock()):
            await self._engine.cache.delete(key)
            return None
        return nonce

    async def validate(self, token: str, wallet_address: str) -> Nonce:
        """Check that *token* is live and was issued to *wallet_address*.

        Never consumes the nonce.

        Raises:
            NonceNotFoundError: Unknown, consumed or expired token.
            NonceAddressMismatchError: Token was issued to another address.
            InvalidAddressError: *wallet_address* is malformed.
        """
        address = normalize_address(wallet_address)
        nonce = await self.get(token)
        if nonce is None:
            raise NonceNotFoundError
        if nonce.wallet_address != address:
            raise NonceAddressMismatchError
        return nonce

    async def consume(self, nonce: Nonce) -> None:
        """Delete *nonce* so it can never be used again.

        The delete only happens if the stored record is still exactly this
        nonce, so of several concurrent consumers exactly one succeeds.

        Raises:
            NonceNotFoundError: Another request consumed it first, or it expired.
        """
        deleted = await self._engine.cache.delete_if_equal(self._key(nonce.token), nonce.to_json())
        if not deleted:
            raise NonceNotFoundError

    async def validate_and_consume(self, token: str, wallet_address: str) -> Nonce:
        """Validate then consume in one call."""
        nonce = await self.validate(token, wallet_address)
        await self.consume(nonce)
        return nonce

    async def sweep(self) -> int:
        """Purge expired records from backends without native expiry."""
        return await self._engine.cache.purge_expired()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _key(self, token: str) -> str:
        return self._engine.cache.key(self.KEY_NAMESPACE, token)
