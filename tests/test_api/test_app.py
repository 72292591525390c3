"""Tests for the health endpoint and app factory."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock, patch

from fastapi.testclient import TestClient

from wallet_auth.api.app import create_app
from wallet_auth.config.settings import MetricsConfig, SessionConfig


def test_health_endpoint(test_client):
    """GET /health should return 200 with every component ok."""
    response = test_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "engine": "ok", "datastore": "ok", "cache": "ok"}


def test_health_degraded(app_config):
    app = create_app(config=app_config)
    with patch("wallet_auth.api.app.WalletAuthEngine") as mock_cls:
        engine = MagicMock()
        engine.initialize = AsyncMock()
        engine.close = AsyncMock()
        engine.health_check = AsyncMock(
            return_value={"engine": "ok", "datastore": "error", "cache": "ok"}
        )
        mock_cls.return_value = engine

        with TestClient(app) as client:
            resp = client.get("/health")
    assert resp.status_code == 503
    assert resp.json()["status"] == "degraded"


def test_app_has_openapi(test_client):
    """The app should serve an OpenAPI schema."""
    response = test_client.get("/openapi.json")
    assert response.status_code == 200
    schema = response.json()
    assert schema["info"]["title"] == "py-wallet-auth"
    assert "/wallet-auth/authenticate" in schema["paths"]


def test_metrics_endpoint(test_client):
    test_client.get("/wallet-auth/nonce", params={"wallet_address": "0x" + "ab" * 20})
    resp = test_client.get("/metrics")
    assert resp.status_code == 200
    assert "text/plain" in resp.headers["content-type"]
    assert "wallet_auth_nonces_issued_total 1.0" in resp.text
    assert "wallet_auth_http_requests_total" in resp.text


def test_metrics_disabled(app_config):
    app_config.metrics = MetricsConfig(enabled=False)
    app = create_app(config=app_config)
    assert app.state.metrics is None
    with TestClient(app) as client:
        assert client.get("/health").status_code == 200


def test_missing_session_secret_warns(app_config, caplog):
    app_config.session = SessionConfig(secret_key="")
    with caplog.at_level(logging.WARNING, logger="wallet_auth.api.app"):
        create_app(config=app_config)
    assert "No session secret configured" in caplog.text


def test_wallet_auth_error_body(test_client):
    resp = test_client.get("/wallet-auth/nonce", params={"wallet_address": "nope"})
    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "error": "Invalid wallet address",
        "code": "invalid-address",
    }
