"""Configuration: pydantic-settings models."""

from __future__ import annotations

from wallet_auth.config.settings import AppConfig, AuthConfig, Network

__all__ = ["AppConfig", "AuthConfig", "Network"]
