"""
Backend WalletPnL: cost basis and PnL analysis for EVM and Solana wallets.

Fetches a wallet's native-token transfer history, normalizes it into a
chain-agnostic ledger, computes FIFO cost basis and realized PnL, and caches
the result per address. Modular layout: ledger (model, normalizer, engine),
database (wallet record store), providers, analysis orchestrator, API server.
"""

__version__ = "0.1.0"
