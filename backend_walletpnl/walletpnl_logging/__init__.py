"""
Structured logging for Backend WalletPnL.

JSON logs with timestamp, wallet_id and event_type.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_walletpnl.walletpnl_logging.logger import (
    LOG_FORMATS,
    bind_wallet,
    configure_structlog,
    get_logger,
)

__all__ = ["LOG_FORMATS", "bind_wallet", "configure_structlog", "get_logger"]
