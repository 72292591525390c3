"""Background task definitions: cron job handlers.

- ``nonce_sweep`` drops expired nonces the cache backend still holds
- ``calculate_metrics`` counts entities for the Prometheus gauges
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wallet_auth.engine.client import WalletAuthEngine
    from wallet_auth.metrics.collector import EngineMetrics

logger = logging.getLogger(__name__)

NONCE_SWEEP = "nonce_sweep"
CALCULATE_METRICS = "calculate_metrics"


async def task_sweep_nonces(engine: WalletAuthEngine) -> None:
    """Purge expired nonces.

    Lookups already ignore expired nonces, so this only reclaims memory for
    backends without native key expiry.
    """
    try:
        removed = await engine.nonce_service.sweep()
        if removed:
            logger.info("Swept %d expired nonces", removed)
    except Exception:
        logger.exception("%s failed", NONCE_SWEEP)


async def task_calculate_metrics(engine: WalletAuthEngine, metrics: EngineMetrics) -> None:
    """Refresh the entity count gauges."""
    try:
        metrics.set_account_count(await engine.account_service.count())
        metrics.set_wallet_count(await engine.identity_service.count())
        metrics.set_revoked_wallet_count(await engine.identity_service.count(active=False))
    except Exception:
        logger.exception("%s failed", CALCULATE_METRICS)
