"""API request/response Pydantic schemas.

These are the *API-layer* schemas, thin wrappers that define the HTTP
contract. They deliberately do NOT inherit from SQLAlchemy models; the
endpoint code maps between ORM objects and these schemas.
"""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime

from pydantic import BaseModel

# ---------------------------------------------------------------------------
# Generic
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error body: ``{"success": false, "error": "...", "code": "..."}``."""

    success: bool = False
    error: str
    code: str = ""


# ---------------------------------------------------------------------------
# Sign-in
# ---------------------------------------------------------------------------


class NonceRequest(BaseModel):
    """POST /wallet-auth/nonce."""

    wallet_address: str = ""


class NonceResponse(BaseModel):
    success: bool = True
    nonce: str
    wallet_address: str
    expires_in: int


class AuthenticateRequest(BaseModel):
    """POST /wallet-auth/authenticate. Missing fields arrive as empty strings."""

    wallet_address: str = ""
    signature: str = ""
    message: str = ""
    nonce: str = ""


class AuthenticateResponse(BaseModel):
    success: bool = True
    uid: int
    username: str


class AccountResponse(BaseModel):
    """GET /wallet-auth/me."""

    uid: int
    username: str
    wallets: list[str]
    last_login_at: datetime | None = None


class FrontendConfigResponse(BaseModel):
    """GET /wallet-auth/config: settings the wallet connector needs."""

    network: str
    chain_id: int
    enable_auto_connect: bool
    redirect_on_success: str
    nonce_lifetime: int
    api_endpoint: str


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class WalletResponse(BaseModel):
    id: int
    wallet_address: str
    checksum_address: str
    account_id: int | None
    active: bool
    created_at: datetime
    last_used_at: datetime
