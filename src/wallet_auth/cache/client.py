"""Nonce store client.

Nonces live in a key/value cache with per-key expiry. ``cache.engine``
selects Redis (shared between workers) or a bounded in-process dict
(single worker, development and tests).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from wallet_auth.config.settings import CacheEngine
from wallet_auth.errors.definitions import StorageUnavailableError

if TYPE_CHECKING:
    from wallet_auth.config.settings import CacheConfig

logger = logging.getLogger(__name__)


class CacheBackend(Protocol):
    """What a nonce store backend has to provide."""

    async def connect(self) -> None: ...
    async def close(self) -> None: ...
    async def ping(self) -> bool: ...
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str, ttl: int | None = None) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def delete_if_equal(self, key: str, value: str) -> bool: ...
    async def purge_expired(self) -> int: ...


def create_backend(config: CacheConfig) -> CacheBackend:
    """Instantiate the backend named by ``config.engine``.

    Raises:
        ValueError: If the engine is not supported.
    """
    from wallet_auth.cache.memory import MemoryCache
    from wallet_auth.cache.redis import RedisCache

    if config.engine == CacheEngine.REDIS:
        return RedisCache(config)
    if config.engine == CacheEngine.MEMORY:
        return MemoryCache(config)
    msg = f"Unsupported cache engine: {config.engine}"
    raise ValueError(msg)


class CacheClient:
    """Delegates to the configured backend once connected."""

    def __init__(self, config: CacheConfig) -> None:
        self._config = config
        self._backend: CacheBackend | None = None

    async def connect(self) -> None:
        """Create and connect the backend.

        Raises:
            ValueError: If the configured engine is not supported.
            StorageUnavailableError: If the backend cannot be reached.
        """
        backend = create_backend(self._config)
        await backend.connect()
        self._backend = backend
        logger.info("Nonce cache connected (%s)", self._config.engine)

    async def close(self) -> None:
        """Disconnect the backend (idempotent)."""
        if self._backend is not None:
            await self._backend.close()
            self._backend = None

    @property
    def is_connected(self) -> bool:
        return self._backend is not None

    def key(self, *parts: str) -> str:
        """Build a namespaced key: ``<prefix>:<part>:<part>``."""
        return ":".join((self._config.key_prefix, *parts))

    async def ping(self) -> bool:
        """True if connected and the backend answers."""
        if self._backend is None:
            return False
        try:
            return await self._backend.ping()
        except StorageUnavailableError:
            return False

    async def get(self, key: str) -> str | None:
        return await self._require().get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Store *value*; with *ttl* the key expires after that many seconds."""
        await self._require().set(key, value, ttl=ttl)

    async def delete(self, key: str) -> None:
        await self._require().delete(key)

    async def delete_if_equal(self, key: str, value: str) -> bool:
        """Atomically delete *key* only if it currently holds *value*.

        Exactly one of several concurrent callers racing on the same key and
        value observes ``True``.
        """
        return await self._require().delete_if_equal(key, value)

    async def purge_expired(self) -> int:
        """Drop expired entries; 0 for backends with native expiry."""
        return await self._require().purge_expired()

    def _require(self) -> CacheBackend:
        if self._backend is None:
            msg = "Cache not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._backend
