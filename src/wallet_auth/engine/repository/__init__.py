"""Repositories: data access layer.

Each repository encapsulates the database queries for one entity and opens
its own session per call.
"""

from wallet_auth.engine.repository.accounts import AccountRepository
from wallet_auth.engine.repository.wallet_identities import WalletIdentityRepository

__all__ = [
    "AccountRepository",
    "WalletIdentityRepository",
]
