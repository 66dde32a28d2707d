"""
Address classifier: chain family from address syntax.

EVM: 0x + 40 hex chars. Solana: 32–44 base58 chars that decode to a 32-byte
public key (checked with solders).
"""

from __future__ import annotations

import re

from solders.pubkey import Pubkey

from backend_walletpnl.core.exceptions import InvalidAddressError
from backend_walletpnl.ledger.models import ChainFamily

EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
SOLANA_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def classify(address: str) -> ChainFamily:
    """Return the chain family for address; raises InvalidAddressError."""
    address = (address or "").strip()
    if not address:
        raise InvalidAddressError("address must be non-empty")
    if EVM_ADDRESS_RE.match(address):
        return ChainFamily.EVM
    if SOLANA_ADDRESS_RE.match(address):
        try:
            Pubkey.from_string(address)
        except ValueError as e:
            raise InvalidAddressError(f"Invalid Solana address: {e}") from e
        return ChainFamily.SOLANA
    raise InvalidAddressError("Invalid wallet address format")
