"""
Chain-agnostic ledger: transfer model, normalizer, and FIFO cost basis engine.
"""

from backend_walletpnl.ledger.cost_basis import (
    CostBasisEngine,
    compute,
    required_opening_balance,
)
from backend_walletpnl.ledger.models import (
    ChainFamily,
    Direction,
    LedgerEntry,
    Lot,
    PositionSummary,
    RawTransfer,
    WalletRecord,
)
from backend_walletpnl.ledger.normalizer import (
    TransactionNormalizer,
    canonical_address,
    normalize,
    sort_ledger,
)

__all__ = [
    "ChainFamily",
    "CostBasisEngine",
    "Direction",
    "LedgerEntry",
    "Lot",
    "PositionSummary",
    "RawTransfer",
    "TransactionNormalizer",
    "WalletRecord",
    "canonical_address",
    "compute",
    "normalize",
    "required_opening_balance",
    "sort_ledger",
]
