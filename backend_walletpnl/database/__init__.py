"""
Persistence layer: wallet records and their deduplicated ledgers.

SQLite by default via SQLAlchemy; any SQLAlchemy URL works.
"""

from backend_walletpnl.database.store import (
    WalletRecordStore,
    WalletUnitOfWork,
    get_store,
)

__all__ = [
    "WalletRecordStore",
    "WalletUnitOfWork",
    "get_store",
]
