"""
Cost basis engine: FIFO lot matching over a time-sorted ledger.

Pure: the same ledger always yields the same PositionSummary. Inbound entries
open lots (cost basis = amount, no price oracle); outbound entries consume the
oldest lots first. An outbound that exceeds open lots raises OverdraftError;
the engine never clamps. All arithmetic is Decimal in a local context that
traps Inexact: a result needing more than DECIMAL_PRECISION digits raises
PrecisionLossError instead of being rounded.
"""

from __future__ import annotations

import decimal
from collections import deque
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterator, Sequence

from backend_walletpnl.core.exceptions import (
    OverdraftError,
    PrecisionLossError,
    UnsortedLedgerError,
)
from backend_walletpnl.ledger.models import (
    ZERO,
    Direction,
    LedgerEntry,
    Lot,
    PositionSummary,
)

DECIMAL_PRECISION = 100

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@contextmanager
def _exact_arithmetic() -> Iterator[None]:
    ctx = decimal.Context(
        prec=DECIMAL_PRECISION,
        rounding=decimal.ROUND_HALF_EVEN,
        traps=[decimal.Inexact, decimal.InvalidOperation, decimal.DivisionByZero, decimal.Overflow],
    )
    try:
        with decimal.localcontext(ctx):
            yield
    except decimal.Inexact as e:
        raise PrecisionLossError(
            f"ledger arithmetic exceeds {DECIMAL_PRECISION} significant digits"
        ) from e


def check_sorted(ledger: Sequence[LedgerEntry]) -> None:
    """Raise UnsortedLedgerError at the first timestamp decrease."""
    for i in range(1, len(ledger)):
        if ledger[i].timestamp < ledger[i - 1].timestamp:
            raise UnsortedLedgerError(
                f"ledger timestamp decreases at position {i} ({ledger[i].hash})",
                position=i,
                tx_hash=ledger[i].hash,
            )


def required_opening_balance(ledger: Sequence[LedgerEntry]) -> Decimal:
    """
    Smallest opening balance that lets the ledger replay without an overdraft,
    i.e. the deepest negative running balance, as a positive amount.
    """
    check_sorted(ledger)
    with _exact_arithmetic():
        running = ZERO
        lowest = ZERO
        for entry in ledger:
            if entry.direction is Direction.INBOUND:
                running += entry.amount
            else:
                running -= entry.amount
            lowest = min(lowest, running)
        return -lowest


class CostBasisEngine:
    """FIFO cost basis; stateless, safe to share between threads."""

    def compute(
        self,
        ledger: Sequence[LedgerEntry],
        *,
        opening_balance: Decimal = ZERO,
    ) -> PositionSummary:
        """
        Replay the ledger and return the resulting position.

        opening_balance seeds one lot dated at (or before) the first entry; it
        is counted in current_balance but not in total_invested.
        """
        check_sorted(ledger)
        if opening_balance < 0:
            raise ValueError("opening_balance must be non-negative")

        with _exact_arithmetic():
            lots: deque[Lot] = deque()
            if opening_balance > 0:
                acquired = ledger[0].timestamp if ledger else _EPOCH
                lots.append(Lot(amount=opening_balance, cost_basis=opening_balance, acquired_at=acquired))

            realized_pnl = ZERO
            total_invested = ZERO
            for entry in ledger:
                if entry.direction is Direction.INBOUND:
                    total_invested += entry.amount
                    if entry.amount > 0:
                        lots.append(Lot(amount=entry.amount, cost_basis=entry.amount, acquired_at=entry.timestamp))
                    continue

                remaining = entry.amount
                while remaining > 0:
                    if not lots:
                        raise OverdraftError(
                            f"outbound {entry.hash} exceeds tracked holdings by {remaining}",
                            tx_hash=entry.hash,
                            shortfall=remaining,
                        )
                    lot = lots[0]
                    consumed = min(remaining, lot.amount)
                    consumed_cost = consumed * lot.unit_cost
                    # Disposal value equals quantity until a price source exists.
                    realized_pnl += consumed - consumed_cost
                    if consumed == lot.amount:
                        lots.popleft()
                    else:
                        lot.amount -= consumed
                        lot.cost_basis -= consumed_cost
                    remaining -= consumed

            current_balance = sum((lot.amount for lot in lots), ZERO)

        return PositionSummary(
            current_balance=current_balance,
            total_invested=total_invested,
            realized_pnl=realized_pnl,
            unrealized_pnl=ZERO,
            opening_balance=opening_balance,
            entry_count=len(ledger),
        )


def compute(ledger: Sequence[LedgerEntry]) -> PositionSummary:
    """Module-level shortcut for CostBasisEngine().compute."""
    return CostBasisEngine().compute(ledger)
