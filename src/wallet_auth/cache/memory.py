"""In-process nonce store: a bounded dict of ``key -> (value, expires_at)``."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from wallet_auth.errors.definitions import StorageUnavailableError

if TYPE_CHECKING:
    from collections.abc import Callable

    from wallet_auth.config.settings import CacheConfig

logger = logging.getLogger(__name__)


class MemoryCache:
    """Bounded cache with per-key expiry for a single worker process.

    No method awaits anything, so each call runs to completion before another
    coroutine on the loop can touch the cache. That makes ``delete_if_equal``
    atomic here.

    At most ``cache.max_size`` keys are held. Live entries are never evicted:
    once the cache is full of unexpired keys a new key is refused with
    :class:`StorageUnavailableError`, so a client issuing nonces in bulk gets
    503s rather than pushing out other users' outstanding nonces. Deployments
    with more than one worker, or any public exposure, should use Redis.
    """

    def __init__(self, config: CacheConfig, *, clock: Callable[[], float] = time.time) -> None:
        self._max_size = config.max_size
        self._clock = clock
        self._entries: dict[str, tuple[str, float | None]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def connect(self) -> None:  # noqa: ASYNC910
        pass

    async def close(self) -> None:  # noqa: ASYNC910
        self._entries.clear()

    async def ping(self) -> bool:  # noqa: ASYNC910
        return True

    async def get(self, key: str) -> str | None:  # noqa: ASYNC910
        if not self._alive(key):
            return None
        return self._entries[key][0]

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:  # noqa: ASYNC910
        """Store *value* under *key*.

        Raises:
            StorageUnavailableError: If *key* is new and every slot holds a
                live entry.
        """
        if key not in self._entries and len(self._entries) >= self._max_size:
            self._purge(self._clock())
            if len(self._entries) >= self._max_size:
                logger.warning("Memory cache full (%d keys), refusing %s", self._max_size, key)
                raise StorageUnavailableError("nonce cache full")
        expires_at = None if ttl is None else self._clock() + ttl
        self._entries[key] = (value, expires_at)

    async def delete(self, key: str) -> None:  # noqa: ASYNC910
        self._entries.pop(key, None)

    async def delete_if_equal(self, key: str, value: str) -> bool:  # noqa: ASYNC910
        if not self._alive(key) or self._entries[key][0] != value:
            return False
        del self._entries[key]
        return True

    async def purge_expired(self) -> int:  # noqa: ASYNC910
        """Remove every expired entry and return how many were dropped."""
        return self._purge(self._clock())

    def _purge(self, now: float) -> int:
        expired = [key for key, (_, exp) in self._entries.items() if exp is not None and now >= exp]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _alive(self, key: str) -> bool:
        """True if *key* is held and unexpired; an expired key is dropped."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry[1] is not None and self._clock() >= entry[1]:
            del self._entries[key]
            return False
        return True
