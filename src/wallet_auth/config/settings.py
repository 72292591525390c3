"""Application settings loaded from environment variables and config files.

Configuration is loaded from (highest priority first):
1. Environment variables (prefix: ``WALLETAUTH_``, nested via ``__``)
2. YAML config file (``--config path`` or ``WALLETAUTH_CONFIG_PATH`` env var)
3. Defaults defined here
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Enums for validated choices
# ---------------------------------------------------------------------------


class DatabaseEngine(enum.StrEnum):
    """Supported database engines."""

    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class CacheEngine(enum.StrEnum):
    """Supported cache backends."""

    MEMORY = "memory"
    REDIS = "redis"


class Network(enum.StrEnum):
    """EVM networks a wallet may sign in from."""

    MAINNET = "mainnet"
    SEPOLIA = "sepolia"
    POLYGON = "polygon"
    BSC = "bsc"
    ARBITRUM = "arbitrum"
    OPTIMISM = "optimism"

    @property
    def chain_id(self) -> int:
        """EIP-155 chain id of the network."""
        return _CHAIN_IDS[self]

    @property
    def label(self) -> str:
        """Human-readable network name."""
        return _LABELS[self]


_CHAIN_IDS = {
    Network.MAINNET: 1,
    Network.SEPOLIA: 11155111,
    Network.POLYGON: 137,
    Network.BSC: 56,
    Network.ARBITRUM: 42161,
    Network.OPTIMISM: 10,
}

_LABELS = {
    Network.MAINNET: "Ethereum Mainnet",
    Network.SEPOLIA: "Sepolia Testnet",
    Network.POLYGON: "Polygon",
    Network.BSC: "Binance Smart Chain",
    Network.ARBITRUM: "Arbitrum",
    Network.OPTIMISM: "Optimism",
}

# Nonce lifetime bounds (seconds)
NONCE_LIFETIME_MIN = 60
NONCE_LIFETIME_MAX = 3600
NONCE_LIFETIME_DEFAULT = 300


# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class ServerConfig(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETAUTH_SERVER__",
        case_sensitive=False,
    )

    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8080


class DatabaseConfig(BaseSettings):
    """Database settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETAUTH_DB__",
        case_sensitive=False,
    )

    engine: DatabaseEngine = Field(
        default=DatabaseEngine.SQLITE,
        description="Database backend: sqlite or postgresql",
    )
    dsn: str = Field(
        default="sqlite+aiosqlite:///./wallet_auth.db",
        description="Async database connection string",
    )
    max_idle_connections: int = 5
    max_open_connections: int = 10
    debug_sql: bool = False
    auto_migrate: bool = Field(
        default=True,
        description="Create missing tables on startup; disable when Alembic owns the schema",
    )


class CacheConfig(BaseSettings):
    """Cache settings (nonce storage)."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETAUTH_CACHE__",
        case_sensitive=False,
    )

    engine: CacheEngine = Field(
        default=CacheEngine.MEMORY,
        description="Cache backend: memory or redis",
    )
    url: str = "redis://localhost:6379/0"
    max_connections: int = 10
    max_size: int = 10000
    key_prefix: str = "wallet_auth"


class AuthConfig(BaseSettings):
    """Wallet sign-in settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETAUTH_AUTH__",
        case_sensitive=False,
    )

    network: Network = Network.MAINNET
    nonce_lifetime: int = Field(
        default=NONCE_LIFETIME_DEFAULT,
        ge=NONCE_LIFETIME_MIN,
        le=NONCE_LIFETIME_MAX,
        description="Nonce lifetime in seconds",
    )
    enable_auto_connect: bool = True
    redirect_on_success: str = "/user"
    siwe_domain: str = Field(
        default="",
        description="Expected SIWE domain; empty accepts any domain",
    )
    username_prefix: str = "wallet_"


class SessionConfig(BaseSettings):
    """Signed session cookie settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETAUTH_SESSION__",
        case_sensitive=False,
    )

    secret_key: str = ""
    cookie_name: str = "wallet_auth_session"
    max_age: int = 1800
    https_only: bool = False


class MetricsConfig(BaseSettings):
    """Prometheus metrics settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETAUTH_METRICS__",
        case_sensitive=False,
    )

    enabled: bool = True


class TaskConfig(BaseSettings):
    """Background task settings."""

    model_config = SettingsConfigDict(
        env_prefix="WALLETAUTH_TASK__",
        case_sensitive=False,
    )

    enabled: bool = True
    nonce_sweep_period: int = 60
    metrics_period: int = 15


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file and return its contents as a dict.

    Returns an empty dict if the file doesn't exist or is empty.
    """
    p = Path(path)
    if not p.exists():
        return {}
    text = p.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return data if isinstance(data, dict) else {}


class AppConfig(BaseSettings):
    """Top-level application configuration.

    Loads settings from environment variables (``WALLETAUTH_`` prefix),
    an optional YAML file, and built-in defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="WALLETAUTH_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    debug: bool = False
    version: str = "0.1.0"
    admin_token: str = ""
    log_level: str = "info"
    config_path: str = ""

    server: ServerConfig = Field(default_factory=ServerConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    task: TaskConfig = Field(default_factory=TaskConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Merge YAML config file contents under the env var overrides."""
        config_path = values.get("config_path", "")
        if not config_path:
            return values
        yaml_data = _load_yaml(config_path)
        # YAML values serve as defaults; env vars (already in *values*) win.
        for key, val in yaml_data.items():
            if key not in values or values[key] is None:
                values[key] = val
            elif isinstance(val, dict) and isinstance(values.get(key), dict):
                merged = {**val, **values[key]}
                values[key] = merged
        return values

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Construct ``AppConfig`` loading defaults from a YAML file.

        Environment variables still override YAML values.
        """
        return cls(config_path=str(path))
