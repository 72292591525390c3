"""Authentication service: the wallet sign-in flow end to end.

A request moves through these states, stopping at ``rejected`` on the first
failed check::

    received -> address_validated -> nonce_validated -> signature_verified
             -> nonce_consumed -> identity_resolved -> session_established

The nonce is consumed only once the signature has verified, so a bad
signature leaves it usable for a retry until it expires.
"""

from __future__ import annotations

import enum
import logging
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from wallet_auth.errors.definitions import (
    InvalidAddressError,
    NonceAddressMismatchError,
    NonceNotFoundError,
    SignatureInvalidError,
    WalletRevokedError,
)
from wallet_auth.errors.wallet_errors import WalletAuthError
from wallet_auth.eth.address import normalize_address

if TYPE_CHECKING:
    from wallet_auth.engine.client import WalletAuthEngine
    from wallet_auth.engine.models.account import Account
    from wallet_auth.engine.services.nonce_service import Nonce

logger = logging.getLogger(__name__)


class AuthState(enum.StrEnum):
    """Progress of one authentication attempt."""

    RECEIVED = "received"
    ADDRESS_VALIDATED = "address_validated"
    NONCE_VALIDATED = "nonce_validated"
    SIGNATURE_VERIFIED = "signature_verified"
    NONCE_CONSUMED = "nonce_consumed"
    IDENTITY_RESOLVED = "identity_resolved"
    SESSION_ESTABLISHED = "session_established"
    REJECTED = "rejected"


class RejectReason(enum.StrEnum):
    """Why an attempt ended in ``rejected``."""

    INVALID_ADDRESS = "invalid_address"
    NONCE_NOT_FOUND = "nonce_not_found"
    NONCE_ADDRESS_MISMATCH = "nonce_address_mismatch"
    NONCE_MISMATCH = "nonce_mismatch"
    INVALID_SIGNATURE = "invalid_signature"
    WALLET_REVOKED = "wallet_revoked"


_REJECTION_ERRORS: dict[RejectReason, type[WalletAuthError]] = {
    RejectReason.INVALID_ADDRESS: InvalidAddressError,
    RejectReason.NONCE_NOT_FOUND: NonceNotFoundError,
    RejectReason.NONCE_ADDRESS_MISMATCH: NonceAddressMismatchError,
    RejectReason.NONCE_MISMATCH: SignatureInvalidError,
    RejectReason.INVALID_SIGNATURE: SignatureInvalidError,
    RejectReason.WALLET_REVOKED: WalletRevokedError,
}


@dataclass(frozen=True)
class AuthRequest:
    """Credentials submitted by the client."""

    wallet_address: str
    message: str
    signature: str
    nonce: str


@dataclass
class AuthResult:
    """Outcome of :meth:`AuthenticationService.authenticate`."""

    state: AuthState = AuthState.RECEIVED
    wallet_address: str = ""
    account: Account | None = None
    reason: RejectReason | None = None
    history: list[AuthState] = field(default_factory=lambda: [AuthState.RECEIVED])

    @property
    def success(self) -> bool:
        return self.state is AuthState.SESSION_ESTABLISHED

    def advance(self, state: AuthState) -> None:
        self.state = state
        self.history.append(state)

    def reject(self, reason: RejectReason) -> AuthResult:
        self.reason = reason
        self.advance(AuthState.REJECTED)
        return self

    def raise_for_rejection(self) -> None:
        """Raise the error matching the reject reason; no-op unless rejected."""
        if self.state is AuthState.REJECTED:
            assert self.reason is not None
            raise _REJECTION_ERRORS[self.reason]()


class AuthenticationService:
    """Orchestrates nonce, signature and identity checks for a sign-in.

    Credential failures come back as a rejected :class:`AuthResult`;
    infrastructure failures (cache or database down) propagate.
    """

    def __init__(self, engine: WalletAuthEngine) -> None:
        self._engine = engine

    async def request_nonce(self, wallet_address: str) -> Nonce:
        """Issue a nonce for the wallet to embed in its sign-in message.

        Raises:
            InvalidAddressError: If the address is malformed.
        """
        return await self._engine.nonce_service.issue(wallet_address)

    async def authenticate(self, request: AuthRequest) -> AuthResult:
        """Run the full sign-in flow for *request*."""
        metrics = self._engine.metrics
        with metrics.track_authenticate() if metrics is not None else nullcontext():
            result = await self._authenticate(request)

        if metrics is not None:
            metrics.record_attempt("success" if result.success else str(result.reason))
        if result.success:
            assert result.account is not None
            logger.info(
                "Wallet %s authenticated as account %d", result.wallet_address, result.account.id
            )
        else:
            logger.warning(
                "Wallet authentication rejected for %s: %s",
                result.wallet_address or request.wallet_address,
                result.reason,
            )
        return result

    async def _authenticate(self, request: AuthRequest) -> AuthResult:
        result = AuthResult()
        nonces = self._engine.nonce_service

        try:
            address = normalize_address(request.wallet_address)
        except InvalidAddressError:
            return result.reject(RejectReason.INVALID_ADDRESS)
        result.wallet_address = address
        result.advance(AuthState.ADDRESS_VALIDATED)

        try:
            nonce = await nonces.validate(request.nonce, address)
        except NonceNotFoundError:
            return result.reject(RejectReason.NONCE_NOT_FOUND)
        except NonceAddressMismatchError:
            return result.reject(RejectReason.NONCE_ADDRESS_MISMATCH)
        result.advance(AuthState.NONCE_VALIDATED)

        verifier = self._engine.signature_verifier
        if verifier.extract_nonce(request.message) != nonce.token:
            return result.reject(RejectReason.NONCE_MISMATCH)
        if not verifier.verify(request.message, request.signature, address):
            return result.reject(RejectReason.INVALID_SIGNATURE)
        result.advance(AuthState.SIGNATURE_VERIFIED)

        try:
            await nonces.consume(nonce)
        except NonceNotFoundError:
            return result.reject(RejectReason.NONCE_NOT_FOUND)
        result.advance(AuthState.NONCE_CONSUMED)

        try:
            account = await self._engine.identity_service.login_or_create(address)
        except WalletRevokedError:
            return result.reject(RejectReason.WALLET_REVOKED)
        result.advance(AuthState.IDENTITY_RESOLVED)

        result.account = await self._engine.account_service.finalize_login(account)
        result.advance(AuthState.SESSION_ESTABLISHED)
        return result
