"""Wallet sign-in REST routes.

Combines the sign-in and admin sub-routers under the ``/wallet-auth`` prefix.
"""

from fastapi import APIRouter

from wallet_auth.api.routes.admin import router as admin_router
from wallet_auth.api.routes.auth import router as auth_router

API_PREFIX = "/wallet-auth"

wallet_auth_router = APIRouter(prefix=API_PREFIX)

wallet_auth_router.include_router(auth_router)
wallet_auth_router.include_router(admin_router)

__all__ = ["API_PREFIX", "wallet_auth_router"]
