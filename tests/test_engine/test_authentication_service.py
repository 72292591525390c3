"""End-to-end tests for AuthenticationService with real signatures."""

from __future__ import annotations

import logging

import pytest

from wallet_auth.engine.client import WalletAuthEngine
from wallet_auth.engine.services.authentication_service import (
    AuthRequest,
    AuthResult,
    AuthState,
    RejectReason,
)
from wallet_auth.errors.definitions import (
    InvalidAddressError,
    NonceNotFoundError,
    SignatureInvalidError,
    StorageUnavailableError,
    WalletRevokedError,
)


async def _signed_request(engine, wallet, siwe, signer, *, signed_by=None) -> AuthRequest:
    nonce = await engine.authentication_service.request_nonce(wallet.address)
    message = siwe(wallet.address, nonce.token)
    return AuthRequest(
        wallet_address=wallet.address,
        message=message,
        signature=signer(signed_by or wallet, message),
        nonce=nonce.token,
    )


def _attempts(engine: WalletAuthEngine, outcome: str) -> float | None:
    assert engine.metrics is not None
    return engine.metrics.registry.get_sample_value(
        "wallet_auth_attempts_total", {"outcome": outcome}
    )


class TestSuccess:
    async def test_authenticate(self, engine, wallet, siwe, signer) -> None:
        request = await _signed_request(engine, wallet, siwe, signer)
        result = await engine.authentication_service.authenticate(request)

        assert result.success
        assert result.reason is None
        assert result.wallet_address == wallet.address.lower()
        assert result.account is not None
        assert result.account.username == "wallet_" + wallet.address.lower()[2:]
        assert result.account.last_login_at is not None
        assert result.history == [
            AuthState.RECEIVED,
            AuthState.ADDRESS_VALIDATED,
            AuthState.NONCE_VALIDATED,
            AuthState.SIGNATURE_VERIFIED,
            AuthState.NONCE_CONSUMED,
            AuthState.IDENTITY_RESOLVED,
            AuthState.SESSION_ESTABLISHED,
        ]
        assert _attempts(engine, "success") == 1.0

    async def test_second_login_same_account(self, engine, wallet, siwe, signer) -> None:
        first = await engine.authentication_service.authenticate(
            await _signed_request(engine, wallet, siwe, signer)
        )
        second = await engine.authentication_service.authenticate(
            await _signed_request(engine, wallet, siwe, signer)
        )
        assert first.account.id == second.account.id

    async def test_replay_rejected(self, engine, wallet, siwe, signer) -> None:
        request = await _signed_request(engine, wallet, siwe, signer)
        assert (await engine.authentication_service.authenticate(request)).success

        replay = await engine.authentication_service.authenticate(request)
        assert replay.state is AuthState.REJECTED
        assert replay.reason is RejectReason.NONCE_NOT_FOUND
        assert _attempts(engine, "nonce_not_found") == 1.0


class TestRejections:
    async def test_invalid_address(self, engine) -> None:
        result = await engine.authentication_service.authenticate(
            AuthRequest(wallet_address="0x123", message="", signature="", nonce="")
        )
        assert result.reason is RejectReason.INVALID_ADDRESS
        assert result.history == [AuthState.RECEIVED, AuthState.REJECTED]

    async def test_unknown_nonce(self, engine, wallet, siwe, signer) -> None:
        message = siwe(wallet.address, "never-issued-nonce")
        result = await engine.authentication_service.authenticate(
            AuthRequest(wallet.address, message, signer(wallet, message), "never-issued-nonce")
        )
        assert result.reason is RejectReason.NONCE_NOT_FOUND

    async def test_nonce_for_other_address(
        self, engine, wallet, other_wallet, siwe, signer
    ) -> None:
        issued = await engine.authentication_service.request_nonce(wallet.address)
        message = siwe(other_wallet.address, issued.token)
        result = await engine.authentication_service.authenticate(
            AuthRequest(other_wallet.address, message, signer(other_wallet, message), issued.token)
        )
        assert result.reason is RejectReason.NONCE_ADDRESS_MISMATCH
        # the nonce stays usable by the wallet it was issued to
        assert await engine.nonce_service.get(issued.token) is not None

    async def test_message_carries_other_nonce(self, engine, wallet, siwe, signer) -> None:
        issued = await engine.authentication_service.request_nonce(wallet.address)
        message = siwe(wallet.address, "some-other-nonce-value")
        result = await engine.authentication_service.authenticate(
            AuthRequest(wallet.address, message, signer(wallet, message), issued.token)
        )
        assert result.reason is RejectReason.NONCE_MISMATCH

    async def test_bad_signature_keeps_nonce_for_retry(
        self, engine, wallet, other_wallet, siwe, signer
    ) -> None:
        bad = await _signed_request(engine, wallet, siwe, signer, signed_by=other_wallet)
        result = await engine.authentication_service.authenticate(bad)
        assert result.reason is RejectReason.INVALID_SIGNATURE
        assert result.history[-2] is AuthState.NONCE_VALIDATED

        retry = AuthRequest(bad.wallet_address, bad.message, signer(wallet, bad.message), bad.nonce)
        assert (await engine.authentication_service.authenticate(retry)).success

    async def test_malformed_signature(self, engine, wallet, siwe, signer) -> None:
        request = await _signed_request(engine, wallet, siwe, signer)
        broken = AuthRequest(request.wallet_address, request.message, "0xdeadbeef", request.nonce)
        result = await engine.authentication_service.authenticate(broken)
        assert result.reason is RejectReason.INVALID_SIGNATURE

    async def test_revoked_wallet(self, engine, wallet, siwe, signer) -> None:
        await engine.identity_service.login_or_create(wallet.address)
        await engine.identity_service.set_active(wallet.address, active=False)

        result = await engine.authentication_service.authenticate(
            await _signed_request(engine, wallet, siwe, signer)
        )
        assert result.reason is RejectReason.WALLET_REVOKED
        assert result.account is None

    async def test_rejection_logged(self, engine, wallet, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            await engine.authentication_service.authenticate(
                AuthRequest(wallet.address, "", "", "missing")
            )
        assert any(
            "nonce_not_found" in r.getMessage() and wallet.address.lower() in r.getMessage()
            for r in caplog.records
        )


class TestInfrastructureFailures:
    async def test_storage_errors_propagate(self, engine, wallet, monkeypatch) -> None:
        async def unavailable(*args: object) -> None:
            raise StorageUnavailableError

        monkeypatch.setattr(engine.nonce_service, "validate", unavailable)
        with pytest.raises(StorageUnavailableError):
            await engine.authentication_service.authenticate(
                AuthRequest(wallet.address, "", "", "token")
            )


class TestRaiseForRejection:
    def test_success_does_not_raise(self) -> None:
        result = AuthResult()
        result.advance(AuthState.SESSION_ESTABLISHED)
        result.raise_for_rejection()

    @pytest.mark.parametrize(
        ("reason", "error"),
        [
            (RejectReason.INVALID_ADDRESS, InvalidAddressError),
            (RejectReason.NONCE_NOT_FOUND, NonceNotFoundError),
            (RejectReason.NONCE_MISMATCH, SignatureInvalidError),
            (RejectReason.INVALID_SIGNATURE, SignatureInvalidError),
            (RejectReason.WALLET_REVOKED, WalletRevokedError),
        ],
    )
    def test_reason_maps_to_error(self, reason: RejectReason, error: type) -> None:
        result = AuthResult().reject(reason)
        with pytest.raises(error):
            result.raise_for_rejection()
