"""Tests for the background task handlers."""

from __future__ import annotations

import time
from unittest.mock import AsyncMock, patch

from wallet_auth.engine.client import WalletAuthEngine
from wallet_auth.metrics.collector import EngineMetrics
from wallet_auth.taskmanager.tasks import task_calculate_metrics, task_sweep_nonces

ADDRESS = "0x" + "ab" * 20


def _stat(metrics: EngineMetrics, entity: str) -> float | None:
    return metrics.registry.get_sample_value("wallet_auth_stats_total", {"entity": entity})


class TestNonceSweep:
    async def test_drops_expired(self, engine: WalletAuthEngine) -> None:
        nonce = await engine.nonce_service.issue(ADDRESS)
        backend = engine.cache._backend
        backend._clock = lambda: time.time() + nonce.ttl

        await task_sweep_nonces(engine)
        assert len(backend) == 0

    async def test_failure_is_logged(self, engine: WalletAuthEngine, caplog) -> None:
        with patch.object(
            engine.nonce_service, "sweep", AsyncMock(side_effect=RuntimeError("down"))
        ):
            await task_sweep_nonces(engine)
        assert "nonce_sweep failed" in caplog.text


class TestCalculateMetrics:
    async def test_sets_counts(self, engine: WalletAuthEngine) -> None:
        identities = engine.identity_service
        await identities.create_for_address(ADDRESS)
        await identities.create_for_address("0x" + "cd" * 20)
        await identities.set_active(ADDRESS, active=False)

        metrics = EngineMetrics()
        await task_calculate_metrics(engine, metrics)
        assert _stat(metrics, "accounts") == 2.0
        assert _stat(metrics, "wallets") == 2.0
        assert _stat(metrics, "revoked_wallets") == 1.0

    async def test_failure_is_logged(self, engine: WalletAuthEngine, caplog) -> None:
        with patch.object(
            engine.account_service, "count", AsyncMock(side_effect=RuntimeError("down"))
        ):
            await task_calculate_metrics(engine, EngineMetrics())
        assert "calculate_metrics failed" in caplog.text
