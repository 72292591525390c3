"""Admin endpoints for wallet bindings.

All routes require the ``x-admin-token`` header.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from wallet_auth.api.dependencies import get_engine, require_admin
from wallet_auth.api.schemas import WalletResponse
from wallet_auth.engine.client import WalletAuthEngine  # noqa: TC001
from wallet_auth.eth.address import to_checksum_address

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _wallet_resp(w: Any) -> dict:
    return WalletResponse(
        id=w.id,
        wallet_address=w.wallet_address,
        checksum_address=to_checksum_address(w.wallet_address),
        account_id=w.account_id,
        active=w.active,
        created_at=w.created_at,
        last_used_at=w.last_used_at,
    ).model_dump(mode="json")


@router.get("/wallets")
async def list_wallets(
    engine: Annotated[WalletAuthEngine, Depends(get_engine)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=500)] = 50,
) -> list[dict]:
    """List wallet bindings, newest first."""
    wallets = await engine.identity_service.list_identities(page=page, page_size=page_size)
    return [_wallet_resp(w) for w in wallets]


@router.get("/wallets/{address}")
async def get_wallet(
    address: str,
    engine: Annotated[WalletAuthEngine, Depends(get_engine)],
) -> dict:
    """Get one wallet binding."""
    return _wallet_resp(await engine.identity_service.get(address))


@router.post("/wallets/{address}/revoke")
async def revoke_wallet(
    address: str,
    engine: Annotated[WalletAuthEngine, Depends(get_engine)],
) -> dict:
    """Disable sign-in for a wallet."""
    return _wallet_resp(await engine.identity_service.set_active(address, active=False))


@router.post("/wallets/{address}/activate")
async def activate_wallet(
    address: str,
    engine: Annotated[WalletAuthEngine, Depends(get_engine)],
) -> dict:
    """Re-enable sign-in for a wallet."""
    return _wallet_resp(await engine.identity_service.set_active(address, active=True))


@router.delete("/wallets/{address}", status_code=204)
async def delete_wallet(
    address: str,
    engine: Annotated[WalletAuthEngine, Depends(get_engine)],
) -> None:
    """Unbind a wallet from its account."""
    await engine.identity_service.remove(address)
