"""FastAPI dependency injection helpers.

Provides ``Depends()``-compatible callables for engine access, the session
account and admin access in route handlers.

Usage in a route::

    @router.get("/me")
    async def me(
        account: Account = Depends(require_account),
        engine: WalletAuthEngine = Depends(get_engine),
    ) -> ...:
        ...
"""

from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import Depends, Header, Request

from wallet_auth.engine.client import WalletAuthEngine  # noqa: TC001
from wallet_auth.engine.models.account import Account  # noqa: TC001
from wallet_auth.errors.definitions import AccountNotFoundError, ErrAdminRequired, ErrUnauthorized

logger = logging.getLogger(__name__)

SESSION_UID = "uid"
SESSION_WALLET = "wallet_address"
ADMIN_TOKEN_HEADER = "x-admin-token"

# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def get_engine(request: Request) -> WalletAuthEngine:
    """Retrieve the engine from ``app.state``.

    The engine is stored on ``app.state.engine`` during lifespan startup.

    Raises:
        RuntimeError: If the engine is not initialized (lifespan not run).
    """
    engine: WalletAuthEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        msg = "engine not initialized"
        raise RuntimeError(msg)
    return engine


# ---------------------------------------------------------------------------
# Session account
# ---------------------------------------------------------------------------


async def get_current_account(
    request: Request,
    engine: Annotated[WalletAuthEngine, Depends(get_engine)],
) -> Account | None:
    """Account stored in the session cookie, or None for an anonymous visitor.

    A session pointing at a deleted account is cleared.
    """
    uid = request.session.get(SESSION_UID)
    if not uid:
        return None
    try:
        return await engine.account_service.get_account(int(uid))
    except AccountNotFoundError:
        logger.info("Session refers to missing account %s, clearing", uid)
        request.session.clear()
        return None


def require_account(
    account: Annotated[Account | None, Depends(get_current_account)],
) -> Account:
    """Dependency that requires a logged-in session."""
    if account is None:
        raise ErrUnauthorized
    return account


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


def require_admin(
    engine: Annotated[WalletAuthEngine, Depends(get_engine)],
    x_admin_token: Annotated[str, Header(alias=ADMIN_TOKEN_HEADER)] = "",
) -> None:
    """Dependency that requires the configured admin token.

    An empty configured token disables the admin API entirely.

    Raises:
        WalletAuthError: 403 if the token is missing, wrong or disabled.
    """
    expected = engine.config.admin_token
    if not expected or not secrets.compare_digest(x_admin_token, expected):
        raise ErrAdminRequired
