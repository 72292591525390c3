"""FastAPI application factory."""

from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from wallet_auth import __version__
from wallet_auth.api.middleware.cors import setup_cors
from wallet_auth.api.routes import API_PREFIX, wallet_auth_router
from wallet_auth.config.settings import AppConfig
from wallet_auth.engine.client import WalletAuthEngine
from wallet_auth.errors.wallet_errors import WalletAuthError
from wallet_auth.metrics.collector import EngineMetrics
from wallet_auth.metrics.middleware import PrometheusMiddleware

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle hooks.

    Initialises the engine (datastore, cache, services) on startup and
    gracefully shuts down on exit.
    """
    config: AppConfig = app.state.config
    engine = WalletAuthEngine(config, metrics=app.state.metrics)

    try:
        await engine.initialize()
        app.state.engine = engine
        logger.info("Wallet auth engine initialized (network=%s)", config.auth.network)
        yield
    finally:
        await engine.close()
        logger.info("Wallet auth engine shut down")


def create_app(*, config: AppConfig | None = None) -> FastAPI:
    """Build and return the FastAPI application.

    Args:
        config: Optional AppConfig. If *None*, a default config is created
            from environment variables.
    """
    if config is None:
        config = AppConfig()

    app = FastAPI(
        title="py-wallet-auth",
        version=__version__,
        description="Sign-In with Ethereum wallet authentication",
        lifespan=_lifespan,
    )

    # Store config on app.state for lifespan access
    app.state.config = config
    app.state.api_prefix = API_PREFIX
    app.state.metrics = EngineMetrics() if config.metrics.enabled else None

    # -- Middleware --
    secret_key = config.session.secret_key
    if not secret_key:
        logger.warning("No session secret configured; sessions will not survive a restart")
        secret_key = secrets.token_urlsafe(32)
    app.add_middleware(
        SessionMiddleware,
        secret_key=secret_key,
        session_cookie=config.session.cookie_name,
        max_age=config.session.max_age,
        https_only=config.session.https_only,
    )
    setup_cors(app)

    # -- Error handler --
    @app.exception_handler(WalletAuthError)
    async def _wallet_auth_error_handler(request: Request, exc: WalletAuthError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.message, "code": exc.code},
        )

    # -- Base routes --
    @app.get("/health", tags=["base"])
    async def health(request: Request) -> JSONResponse:
        engine: WalletAuthEngine | None = getattr(request.app.state, "engine", None)
        if engine is None:
            return JSONResponse(status_code=503, content={"status": "starting"})
        components = await engine.health_check()
        healthy = all(v == "ok" for v in components.values())
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={"status": "ok" if healthy else "degraded", **components},
        )

    @app.get("/metrics", tags=["base"], include_in_schema=False)
    async def metrics_endpoint() -> Response:
        """Prometheus metrics endpoint."""
        registry = app.state.metrics.registry if app.state.metrics is not None else None
        body = generate_latest(registry) if registry else generate_latest()
        return Response(
            content=body,
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    # -- Prometheus request metrics middleware --
    if app.state.metrics is not None:
        app.add_middleware(PrometheusMiddleware, registry=app.state.metrics.registry)

    app.include_router(wallet_auth_router)

    return app
