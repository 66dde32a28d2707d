"""
Configuration management for Backend WalletPnL.

Loads settings from environment variables and an optional .env file.
"""

from backend_walletpnl.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
