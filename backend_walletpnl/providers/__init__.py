"""
Chain data providers: raw native-token transfer history per chain family.

build_provider(settings) returns the static fixture provider or, in live
mode, a router over the Solana RPC and EVM explorer providers.
"""

from __future__ import annotations

from backend_walletpnl.config.settings import Settings
from backend_walletpnl.ledger.models import ChainFamily
from backend_walletpnl.providers.base import (
    ChainDataProvider,
    RoutingProvider,
    StaticTransferProvider,
)
from backend_walletpnl.providers.evm_explorer import EvmExplorerProvider
from backend_walletpnl.providers.solana_rpc import SolanaRpcProvider


def build_provider(settings: Settings) -> ChainDataProvider:
    if settings.provider_mode == "static":
        return StaticTransferProvider()
    return RoutingProvider(
        {
            ChainFamily.SOLANA: SolanaRpcProvider(
                settings.solana_rpc_url, timeout_sec=settings.provider_timeout_sec
            ),
            ChainFamily.EVM: EvmExplorerProvider(
                settings.evm_explorer_url,
                settings.etherscan_api_key,
                timeout_sec=settings.provider_timeout_sec,
            ),
        }
    )


__all__ = [
    "ChainDataProvider",
    "EvmExplorerProvider",
    "RoutingProvider",
    "SolanaRpcProvider",
    "StaticTransferProvider",
    "build_provider",
]
