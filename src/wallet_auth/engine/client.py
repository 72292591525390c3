"""WalletAuthEngine: central engine client owning all services."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wallet_auth.cache.client import CacheClient
    from wallet_auth.config.settings import AppConfig
    from wallet_auth.datastore.client import Datastore
    from wallet_auth.engine.services.account_service import AccountService
    from wallet_auth.engine.services.authentication_service import AuthenticationService
    from wallet_auth.engine.services.identity_service import WalletIdentityService
    from wallet_auth.engine.services.nonce_service import NonceService
    from wallet_auth.eth.signature import SignatureVerifier
    from wallet_auth.metrics.collector import EngineMetrics
    from wallet_auth.taskmanager.manager import TaskManager

# Error messages
_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


class WalletAuthEngine:
    """Central engine that owns all services and infrastructure.

    Provides lifecycle management and a service registry: services receive
    the engine and reach their collaborators through its properties.
    """

    def __init__(self, config: AppConfig, *, metrics: EngineMetrics | None = None) -> None:
        """Initialize engine with configuration.

        Args:
            config: Application configuration.
            metrics: Metrics to record into. When omitted and metrics are
                enabled, the engine creates its own on initialize().
        """
        self._config = config
        self._initialized = False
        self._metrics = metrics

        # Infrastructure components
        self._datastore: Datastore | None = None
        self._cache: CacheClient | None = None
        self._verifier: SignatureVerifier | None = None

        # Services
        self._nonce_service: NonceService | None = None
        self._account_service: AccountService | None = None
        self._identity_service: WalletIdentityService | None = None
        self._authentication_service: AuthenticationService | None = None
        self._task_manager: TaskManager | None = None

    async def initialize(self) -> None:
        """Open datastore and cache, create tables, and start services.

        Raises:
            RuntimeError: If already initialized.
        """
        if self._initialized:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        # Import here to avoid circular deps
        from wallet_auth.cache.client import CacheClient
        from wallet_auth.datastore.client import Datastore

        self._datastore = Datastore(self._config.db)
        await self._datastore.open(create_tables=self._config.db.auto_migrate)

        self._cache = CacheClient(self._config.cache)
        await self._cache.connect()

        from wallet_auth.eth.signature import SignatureVerifier

        auth = self._config.auth
        self._verifier = SignatureVerifier(chain_id=auth.network.chain_id, domain=auth.siwe_domain)

        if self._metrics is None and self._config.metrics.enabled:
            from wallet_auth.metrics.collector import EngineMetrics

            self._metrics = EngineMetrics()

        from wallet_auth.engine.services.account_service import AccountService
        from wallet_auth.engine.services.authentication_service import AuthenticationService
        from wallet_auth.engine.services.identity_service import WalletIdentityService
        from wallet_auth.engine.services.nonce_service import NonceService

        self._nonce_service = NonceService(self)
        self._account_service = AccountService(self)
        self._identity_service = WalletIdentityService(self)
        self._authentication_service = AuthenticationService(self)

        # Task manager and cron jobs
        from functools import partial

        from wallet_auth.taskmanager.manager import CronJob, TaskManager
        from wallet_auth.taskmanager.tasks import (
            CALCULATE_METRICS,
            NONCE_SWEEP,
            task_calculate_metrics,
            task_sweep_nonces,
        )

        if self._config.task.enabled:
            self._task_manager = TaskManager(metrics=self._metrics)
            self._task_manager.register(
                NONCE_SWEEP,
                CronJob(
                    handler=partial(task_sweep_nonces, self),
                    period=self._config.task.nonce_sweep_period,
                ),
            )
            if self._metrics is not None:
                self._task_manager.register(
                    CALCULATE_METRICS,
                    CronJob(
                        handler=partial(task_calculate_metrics, self, self._metrics),
                        period=self._config.task.metrics_period,
                        run_at_start=True,
                    ),
                )
            await self._task_manager.start()

        self._initialized = True

    async def close(self) -> None:
        """Gracefully shut down all services and connections.

        Can be called multiple times (idempotent).
        """
        if not self._initialized:
            return

        # Stop task manager first (depends on services)
        if self._task_manager is not None:
            await self._task_manager.stop()
            self._task_manager = None

        self._authentication_service = None
        self._identity_service = None
        self._account_service = None
        self._nonce_service = None
        self._verifier = None

        if self._cache is not None:
            await self._cache.close()
            self._cache = None

        if self._datastore is not None:
            await self._datastore.close()
            self._datastore = None

        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        """Check if the engine is initialized."""
        return self._initialized

    @property
    def config(self) -> AppConfig:
        """Get the application configuration."""
        return self._config

    @property
    def datastore(self) -> Datastore:
        """Get the datastore instance.

        Raises:
            RuntimeError: If engine not initialized.
        """
        if self._datastore is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._datastore

    @property
    def cache(self) -> CacheClient:
        """Get the cache client instance.

        Raises:
            RuntimeError: If engine not initialized.
        """
        if self._cache is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._cache

    @property
    def signature_verifier(self) -> SignatureVerifier:
        """Get the signature verifier configured for the network."""
        if self._verifier is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._verifier

    @property
    def nonce_service(self) -> NonceService:
        """Get the nonce service."""
        if self._nonce_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._nonce_service

    @property
    def account_service(self) -> AccountService:
        """Get the account service."""
        if self._account_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._account_service

    @property
    def identity_service(self) -> WalletIdentityService:
        """Get the wallet identity service."""
        if self._identity_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._identity_service

    @property
    def authentication_service(self) -> AuthenticationService:
        """Get the authentication service."""
        if self._authentication_service is None:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return self._authentication_service

    @property
    def metrics(self) -> EngineMetrics | None:
        """Get the engine metrics (None if disabled)."""
        return self._metrics

    @property
    def task_manager(self) -> TaskManager | None:
        """Get the task manager (None if not enabled)."""
        return self._task_manager

    async def health_check(self) -> dict[str, str]:
        """Check health status of all engine components.

        Returns:
            Dictionary with component statuses ('ok', 'error', 'not_initialized').
        """
        status = {
            "engine": "ok" if self._initialized else "not_initialized",
            "datastore": "unknown",
            "cache": "unknown",
        }

        if self._initialized:
            if self._datastore is not None and await self._datastore.ping():
                status["datastore"] = "ok"
            else:
                status["datastore"] = "error"

            if self._cache is not None and await self._cache.ping():
                status["cache"] = "ok"
            else:
                status["cache"] = "error"

        return status
