"""Sign-in endpoints: nonce, authenticate, logout, me, config."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from wallet_auth.api.dependencies import SESSION_UID, SESSION_WALLET, get_engine, require_account
from wallet_auth.api.schemas import (
    AccountResponse,
    AuthenticateRequest,
    AuthenticateResponse,
    ErrorResponse,
    FrontendConfigResponse,
    NonceRequest,
    NonceResponse,
)
from wallet_auth.engine.client import WalletAuthEngine  # noqa: TC001
from wallet_auth.engine.models.account import Account  # noqa: TC001
from wallet_auth.engine.services.authentication_service import AuthRequest
from wallet_auth.errors.definitions import (
    InvalidAddressError,
    SignatureInvalidError,
    WalletRevokedError,
)
from wallet_auth.errors.wallet_errors import WalletAuthError

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["wallet-auth"],
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)


def _error(exc: WalletAuthError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


async def _issue_nonce(engine: WalletAuthEngine, wallet_address: str) -> dict:
    nonce = await engine.authentication_service.request_nonce(wallet_address)
    return NonceResponse(
        nonce=nonce.token,
        wallet_address=nonce.wallet_address,
        expires_in=nonce.ttl,
    ).model_dump()


# ---------------------------------------------------------------------------
# Nonce
# ---------------------------------------------------------------------------


@router.get("/nonce")
async def get_nonce(
    engine: Annotated[WalletAuthEngine, Depends(get_engine)],
    wallet_address: str = "",
) -> dict:
    """Issue a nonce for ``?wallet_address=``."""
    return await _issue_nonce(engine, wallet_address)


@router.post("/nonce")
async def post_nonce(
    engine: Annotated[WalletAuthEngine, Depends(get_engine)],
    body: NonceRequest,
) -> dict:
    """Issue a nonce for the address in the JSON body."""
    return await _issue_nonce(engine, body.wallet_address)


# ---------------------------------------------------------------------------
# Authenticate / session
# ---------------------------------------------------------------------------


@router.post("/authenticate", response_model=None)
async def authenticate(
    request: Request,
    engine: Annotated[WalletAuthEngine, Depends(get_engine)],
    body: AuthenticateRequest,
) -> dict | JSONResponse:
    """Verify a signed sign-in message and log the wallet's account in."""
    auth_request = AuthRequest(
        wallet_address=body.wallet_address,
        message=body.message,
        signature=body.signature,
        nonce=body.nonce,
    )
    try:
        result = await engine.authentication_service.authenticate(auth_request)
    except Exception:
        logger.exception("Wallet authentication failed for %s", body.wallet_address)
        return _error(WalletAuthError("Authentication failed"))

    try:
        result.raise_for_rejection()
    except (InvalidAddressError, WalletRevokedError) as exc:
        return _error(exc)
    except WalletAuthError:
        # Nonce and signature failures all get the same answer.
        return _error(SignatureInvalidError())

    account = result.account
    assert account is not None
    request.session.clear()
    request.session[SESSION_UID] = account.id
    request.session[SESSION_WALLET] = result.wallet_address
    return AuthenticateResponse(uid=account.id, username=account.username).model_dump()


@router.post("/logout")
async def logout(request: Request) -> dict:
    """Drop the session."""
    request.session.clear()
    return {"success": True}


@router.get("/me")
async def me(
    account: Annotated[Account, Depends(require_account)],
    engine: Annotated[WalletAuthEngine, Depends(get_engine)],
) -> dict:
    """The logged-in account and its wallets."""
    identities = await engine.identity_service.list_for_account(account.id)
    return AccountResponse(
        uid=account.id,
        username=account.username,
        wallets=[i.wallet_address for i in identities],
        last_login_at=account.last_login_at,
    ).model_dump(mode="json")


@router.get("/config")
async def frontend_config(
    request: Request,
    engine: Annotated[WalletAuthEngine, Depends(get_engine)],
) -> dict:
    """Settings for the front-end wallet connector."""
    auth = engine.config.auth
    return FrontendConfigResponse(
        network=auth.network.value,
        chain_id=auth.network.chain_id,
        enable_auto_connect=auth.enable_auto_connect,
        redirect_on_success=auth.redirect_on_success,
        nonce_lifetime=auth.nonce_lifetime,
        api_endpoint=request.app.state.api_prefix,
    ).model_dump()
