"""
Chain-agnostic ledger models.

LedgerEntry is the canonical native-token transfer; PositionSummary is the
cost-basis engine output; WalletRecord is the persisted per-address view.
Amounts are Decimal everywhere; floats never enter the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

ZERO = Decimal(0)


class ChainFamily(str, Enum):
    """Chain family of an address; fixed per wallet record."""

    EVM = "EVM"
    SOLANA = "Solana"


class Direction(str, Enum):
    """Transfer direction relative to the analyzed wallet."""

    INBOUND = "in"
    OUTBOUND = "out"


# Provider-native transfer: keys hash, timestamp, value/amount, from, to, optional type.
RawTransfer = Mapping[str, Any]


@dataclass(frozen=True)
class LedgerEntry:
    """
    One canonical transfer in a wallet's ledger.

    hash is the sole deduplication key; its fields never change once stored.
    """

    hash: str
    timestamp: datetime
    """Timezone-aware UTC instant."""
    direction: Direction
    amount: Decimal
    """Native token units; non-negative."""
    counterparty: str

    @property
    def sort_key(self) -> tuple[datetime, str]:
        return (self.timestamp, self.hash)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "timestamp": self.timestamp.isoformat(),
            "direction": self.direction.value,
            "amount": str(self.amount),
            "counterparty": self.counterparty,
        }


@dataclass
class Lot:
    """Open inbound position consumed FIFO by outbound entries."""

    amount: Decimal
    cost_basis: Decimal
    acquired_at: datetime

    @property
    def unit_cost(self) -> Decimal:
        return self.cost_basis / self.amount


@dataclass(frozen=True)
class PositionSummary:
    """
    Result of FIFO lot matching over a full ledger.

    unrealized_pnl is a zero placeholder: no market price is available.
    opening_balance is non-zero only when an implicit opening lot was applied.
    """

    current_balance: Decimal
    total_invested: Decimal
    realized_pnl: Decimal
    unrealized_pnl: Decimal = ZERO
    opening_balance: Decimal = ZERO
    entry_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "currentBalance": str(self.current_balance),
            "totalInvested": str(self.total_invested),
            "realizedPNL": str(self.realized_pnl),
            "unrealizedPNL": str(self.unrealized_pnl),
            "openingBalance": str(self.opening_balance),
            "entryCount": self.entry_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PositionSummary":
        return cls(
            current_balance=Decimal(str(data["currentBalance"])),
            total_invested=Decimal(str(data["totalInvested"])),
            realized_pnl=Decimal(str(data["realizedPNL"])),
            unrealized_pnl=Decimal(str(data.get("unrealizedPNL", "0"))),
            opening_balance=Decimal(str(data.get("openingBalance", "0"))),
            entry_count=int(data.get("entryCount", 0)),
        )


@dataclass
class WalletRecord:
    """Persisted per-address record: deduplicated sorted ledger plus last summary."""

    address: str
    chain_family: ChainFamily
    ledger: list[LedgerEntry] = field(default_factory=list)
    last_computed_summary: PositionSummary | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
