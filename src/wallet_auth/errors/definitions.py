"""Error definitions for the wallet sign-in flow."""

from __future__ import annotations

from wallet_auth.errors.wallet_errors import WalletAuthError

# -- Validation ------------------------------------------------------------


class InvalidAddressError(WalletAuthError):
    """Wallet address is not ``0x`` followed by 40 hex characters."""

    def __init__(self, message: str = "Invalid wallet address") -> None:
        super().__init__(message, status_code=400, code="invalid-address")


class MalformedMessageError(WalletAuthError):
    """Signed message is not a well-formed sign-in statement."""

    def __init__(self, message: str = "malformed sign-in message") -> None:
        super().__init__(message, status_code=400, code="malformed-message")


# -- Nonce -----------------------------------------------------------------


class NonceNotFoundError(WalletAuthError):
    """Nonce is unknown, already consumed, or expired."""

    def __init__(self, message: str = "nonce not found or expired") -> None:
        super().__init__(message, status_code=401, code="nonce-not-found")


class NonceAddressMismatchError(WalletAuthError):
    """Nonce was issued to a different wallet address."""

    def __init__(self, message: str = "nonce was issued to another address") -> None:
        super().__init__(message, status_code=401, code="nonce-address-mismatch")


# -- Signature -------------------------------------------------------------


class SignatureInvalidError(WalletAuthError):
    """Signature does not verify against the claimed address."""

    def __init__(self, message: str = "Invalid signature") -> None:
        super().__init__(message, status_code=401, code="invalid-signature")


# -- Identity --------------------------------------------------------------


class DuplicateAddressError(WalletAuthError):
    """A wallet identity already exists for this address (storage constraint)."""

    def __init__(self, address: str = "") -> None:
        message = "wallet address already bound"
        if address:
            message = f"{message}: {address}"
        super().__init__(message, status_code=409, code="duplicate-address")
        self.address = address


class DuplicateUsernameError(WalletAuthError):
    """An account with this username already exists (storage constraint)."""

    def __init__(self, username: str = "") -> None:
        message = "username already taken"
        if username:
            message = f"{message}: {username}"
        super().__init__(message, status_code=409, code="duplicate-username")
        self.username = username


class WalletRevokedError(WalletAuthError):
    """Wallet identity exists but has been deactivated."""

    def __init__(self, message: str = "Wallet disabled") -> None:
        super().__init__(message, status_code=403, code="wallet-revoked")


class WalletNotFoundError(WalletAuthError):
    """No wallet identity is bound to the address."""

    def __init__(self, message: str = "wallet not found") -> None:
        super().__init__(message, status_code=404, code="wallet-not-found")


class AccountNotFoundError(WalletAuthError):
    """Account id does not exist."""

    def __init__(self, message: str = "account not found") -> None:
        super().__init__(message, status_code=404, code="account-not-found")


# -- Infrastructure --------------------------------------------------------


class StorageUnavailableError(WalletAuthError):
    """Nonce cache or identity database cannot be reached."""

    def __init__(self, message: str = "storage unavailable") -> None:
        super().__init__(message, status_code=503, code="storage-unavailable")


# -- Access ----------------------------------------------------------------

ErrUnauthorized = WalletAuthError("unauthorized", status_code=401, code="unauthorized")
ErrAdminRequired = WalletAuthError(
    "admin authentication required", status_code=403, code="admin-required"
)
