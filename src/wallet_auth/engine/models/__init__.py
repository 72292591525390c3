"""Engine data models (SQLAlchemy ORM).

Import :data:`ALL_MODELS` for migration and table creation.
"""

from wallet_auth.engine.models.account import Account
from wallet_auth.engine.models.base import Base, CreatedAtMixin
from wallet_auth.engine.models.wallet_identity import WalletIdentity

ALL_MODELS: list[type[Base]] = [
    Account,
    WalletIdentity,
]

__all__ = [
    "ALL_MODELS",
    "Account",
    "Base",
    "CreatedAtMixin",
    "WalletIdentity",
]
