"""py-wallet-auth: Sign-In-With-Ethereum wallet authentication service."""

__version__ = "0.1.0"
