"""
Chain data provider interface and the fixture-backed static provider.

A provider returns raw transfers for an address: mappings with hash,
timestamp, value, from, to (and optionally type). Failures surface as
ProviderUnavailableError; the orchestrator never retries.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Mapping, Sequence

from backend_walletpnl.core.exceptions import ProviderUnavailableError
from backend_walletpnl.ledger.models import ChainFamily, RawTransfer
from backend_walletpnl.walletpnl_logging import get_logger

logger = get_logger(__name__)


class ChainDataProvider(ABC):
    """Per-chain source of native-token transfers for one address."""

    @abstractmethod
    def fetch_transfers(self, address: str, chain_family: ChainFamily) -> list[RawTransfer]:
        """Return raw transfers for address. Raises ProviderUnavailableError."""
        ...


def default_fixture_transfers(address: str, chain_family: ChainFamily) -> list[dict]:
    """Two-transfer sample history per family (one inbound, one partial outbound)."""
    if chain_family is ChainFamily.EVM:
        return [
            {"hash": "0x123", "timestamp": "2023-01-01T00:00:00Z", "value": "1.0", "from": "0x0", "to": address, "type": "in"},
            {"hash": "0x456", "timestamp": "2023-02-01T00:00:00Z", "value": "0.5", "from": address, "to": "0x789", "type": "out"},
        ]
    return [
        {"hash": "sol123", "timestamp": "2023-01-15T00:00:00Z", "value": "5.0", "from": "sol000", "to": address, "type": "in"},
        {"hash": "sol456", "timestamp": "2023-02-15T00:00:00Z", "value": "2.5", "from": address, "to": "sol789", "type": "out"},
    ]


class StaticTransferProvider(ChainDataProvider):
    """
    Serves transfers from memory: an explicit per-address mapping first, then
    (when use_defaults) the sample history for the chain family.
    """

    def __init__(
        self,
        transfers: Mapping[str, Sequence[RawTransfer]] | None = None,
        *,
        use_defaults: bool = True,
    ) -> None:
        self._transfers = {k: list(v) for k, v in (transfers or {}).items()}
        self._use_defaults = use_defaults

    def set_transfers(self, address: str, transfers: Sequence[RawTransfer]) -> None:
        self._transfers[address] = list(transfers)

    def fetch_transfers(self, address: str, chain_family: ChainFamily) -> list[RawTransfer]:
        if address in self._transfers:
            return [dict(t) for t in self._transfers[address]]
        if self._use_defaults:
            return default_fixture_transfers(address, chain_family)
        return []


class RoutingProvider(ChainDataProvider):
    """Dispatches to one provider per chain family."""

    def __init__(self, providers: Mapping[ChainFamily, ChainDataProvider]) -> None:
        self._providers = dict(providers)

    def fetch_transfers(self, address: str, chain_family: ChainFamily) -> list[RawTransfer]:
        provider = self._providers.get(chain_family)
        if provider is None:
            raise ProviderUnavailableError(f"no provider configured for {chain_family.value}")
        return provider.fetch_transfers(address, chain_family)
