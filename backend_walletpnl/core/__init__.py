"""
Core utilities: error taxonomy and cross-cutting concerns shared by the
ledger, database, providers, orchestrator and API server.
"""

from backend_walletpnl.core.exceptions import (
    AuthenticationError,
    ChainFamilyMismatchError,
    ConfigError,
    InvalidAddressError,
    InvalidTokenError,
    MalformedTransferError,
    OverdraftError,
    PrecisionLossError,
    ProviderUnavailableError,
    StoreUnavailableError,
    UnsortedLedgerError,
    WalletNotFoundError,
    WalletPnlError,
)

__all__ = [
    "AuthenticationError",
    "ChainFamilyMismatchError",
    "ConfigError",
    "InvalidAddressError",
    "InvalidTokenError",
    "MalformedTransferError",
    "OverdraftError",
    "PrecisionLossError",
    "ProviderUnavailableError",
    "StoreUnavailableError",
    "UnsortedLedgerError",
    "WalletNotFoundError",
    "WalletPnlError",
]
