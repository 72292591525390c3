"""Cache: short-TTL key-value storage for nonces."""

from __future__ import annotations

from wallet_auth.cache.client import CacheClient

__all__ = ["CacheClient"]
