"""
Application-level exceptions.

Every domain error carries a stable ``code`` and an HTTP ``status_code`` hint
so the API layer and callers can react without string matching. Data errors
(malformed transfers, unsorted ledgers, overdrafts, chain family mismatches)
are surfaced as-is; infrastructure errors (provider, store) are transient.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


class WalletPnlError(Exception):
    """Base class for all domain errors."""

    code = "WALLETPNL_ERROR"
    status_code = 500

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"error": self.code, "detail": self.message}
        if self.context:
            out["context"] = {k: str(v) if isinstance(v, Decimal) else v for k, v in self.context.items()}
        return out


class ConfigError(WalletPnlError):
    """Required configuration is missing or invalid."""

    code = "CONFIG_ERROR"


# --- Input / provider data errors ---


class MalformedTransferError(WalletPnlError):
    """A raw transfer is missing hash/timestamp/amount or has an invalid amount."""

    code = "MALFORMED_TRANSFER"
    status_code = 422

    def __init__(self, message: str, *, index: int | None = None, tx_hash: str | None = None) -> None:
        super().__init__(message, index=index, tx_hash=tx_hash)
        self.index = index
        self.tx_hash = tx_hash


class UnsortedLedgerError(WalletPnlError):
    """Ledger timestamps decrease at some position."""

    code = "UNSORTED_LEDGER"
    status_code = 422

    def __init__(self, message: str, *, position: int, tx_hash: str) -> None:
        super().__init__(message, position=position, tx_hash=tx_hash)
        self.position = position
        self.tx_hash = tx_hash


class OverdraftError(WalletPnlError):
    """An outbound transfer exceeds the holdings tracked by open lots."""

    code = "OVERDRAFT"
    status_code = 409

    def __init__(self, message: str, *, tx_hash: str, shortfall: Decimal) -> None:
        super().__init__(message, tx_hash=tx_hash, shortfall=shortfall)
        self.tx_hash = tx_hash
        self.shortfall = shortfall


class PrecisionLossError(WalletPnlError):
    """An amount sum or ratio needs more significant digits than the engine carries."""

    code = "PRECISION_LOSS"
    status_code = 422


class ChainFamilyMismatchError(WalletPnlError):
    """A stored wallet is requested under a different chain family."""

    code = "CHAIN_FAMILY_MISMATCH"
    status_code = 409

    def __init__(self, address: str, stored: Any, requested: Any) -> None:
        super().__init__(
            f"Wallet {address} is stored as {getattr(stored, 'value', stored)}, "
            f"not {getattr(requested, 'value', requested)}",
            address=address,
        )
        self.address = address
        self.stored = stored
        self.requested = requested


class InvalidAddressError(WalletPnlError):
    """Address matches neither the EVM nor the Solana format."""

    code = "INVALID_ADDRESS"
    status_code = 400


class WalletNotFoundError(WalletPnlError):
    """No stored record (or no computed summary) for the address."""

    code = "WALLET_NOT_FOUND"
    status_code = 404

    def __init__(self, address: str) -> None:
        super().__init__(f"No wallet record for {address}", address=address)
        self.address = address


# --- Infrastructure errors ---


class ProviderUnavailableError(WalletPnlError):
    """Chain data provider failed; not retried by the core."""

    code = "PROVIDER_UNAVAILABLE"
    status_code = 503


class StoreUnavailableError(WalletPnlError):
    """Wallet record store I/O failed."""

    code = "STORE_UNAVAILABLE"
    status_code = 503


# --- Auth ---


class AuthenticationError(WalletPnlError):
    """Missing bearer token or bad credentials."""

    code = "AUTH_REQUIRED"
    status_code = 401


class InvalidTokenError(AuthenticationError):
    """Bearer token failed signature or expiry validation."""

    code = "INVALID_TOKEN"
    status_code = 403
