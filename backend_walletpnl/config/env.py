"""
Environment variable loading for WalletPnL.

- WALLETPNL_DB_URL / DATABASE_URL: SQLAlchemy URL for the wallet record store
- SOLANA_RPC_URL: Solana JSON-RPC endpoint
- HELIUS_API_KEY: Helius API key (fallback for RPC URL)
- EVM_EXPLORER_URL / ETHERSCAN_API_KEY: Etherscan-style explorer for EVM history
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_walletpnl/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_DB_URL = "sqlite:///walletpnl.db"
MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
HELIUS_MAINNET_URL_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={key}"
ETHERSCAN_API_URL = "https://api.etherscan.io/api"


def load_walletpnl_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    if _ENV_PATH.is_file():
        load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def env_int(name: str, default: int) -> int:
    raw = env_str(name)
    return int(raw) if raw else default


def env_float(name: str, default: float) -> float:
    raw = env_str(name)
    return float(raw) if raw else default


def get_database_url() -> str:
    """Return WALLETPNL_DB_URL, then DATABASE_URL, else the local SQLite file."""
    load_walletpnl_env()
    return env_str("WALLETPNL_DB_URL") or env_str("DATABASE_URL") or DEFAULT_DB_URL


def get_solana_rpc_url() -> str:
    """
    Resolve Solana RPC URL from env.
    Order: SOLANA_RPC_URL > HELIUS_API_KEY > public mainnet.
    """
    load_walletpnl_env()
    url = env_str("SOLANA_RPC_URL")
    if url:
        return url
    key = env_str("HELIUS_API_KEY")
    if key:
        return HELIUS_MAINNET_URL_TEMPLATE.format(key=key)
    return MAINNET_RPC_URL


def get_evm_explorer_url() -> str:
    load_walletpnl_env()
    return env_str("EVM_EXPLORER_URL") or ETHERSCAN_API_URL


def mask_url(url: str) -> str:
    """Mask an api-key query value before logging a URL."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
