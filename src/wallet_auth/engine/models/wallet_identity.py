"""WalletIdentity model: durable binding of a wallet address to an account."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - SQLAlchemy needs this at runtime for Mapped[datetime]

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from wallet_auth.engine.models.base import Base, CreatedAtMixin, utcnow


class WalletIdentity(Base, CreatedAtMixin):
    """Wallet address bound to (at most) one account.

    ``wallet_address`` is always stored normalized (``0x`` + lowercase hex) and
    is unique at the schema level, so two racing first logins cannot both
    insert a row. ``account_id`` is NULL for an unowned wallet.
    """

    __tablename__ = "wallet_identities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    wallet_address: Mapped[str] = mapped_column(
        String(42), unique=True, nullable=False, comment="Normalized 0x address"
    )
    account_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        default=None,
    )
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_used_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    @property
    def owner_id(self) -> int:
        """Owning account id, 0 when the wallet is unowned."""
        return self.account_id or 0

    def __repr__(self) -> str:
        return (
            f"<WalletIdentity id={self.id} address={self.wallet_address} "
            f"account={self.account_id} active={self.active}>"
        )
