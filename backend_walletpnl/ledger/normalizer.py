"""
Transaction normalizer: provider-native transfers to canonical ledger entries.

Maps to/from against the analyzed wallet to a direction (case-insensitive for
EVM hex, case-sensitive for Solana base58), validates hash/timestamp/amount,
and returns entries sorted by (timestamp, hash). A transfer from the wallet to
itself becomes a zero-amount inbound entry. Deduplication is left to the
store, which knows the previously stored hashes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Sequence

from backend_walletpnl.core.exceptions import MalformedTransferError
from backend_walletpnl.ledger.models import (
    ZERO,
    ChainFamily,
    Direction,
    LedgerEntry,
    RawTransfer,
)
from backend_walletpnl.walletpnl_logging import get_logger

logger = get_logger(__name__)

_DIRECTION_MARKERS = {
    "in": Direction.INBOUND,
    "inbound": Direction.INBOUND,
    "out": Direction.OUTBOUND,
    "outbound": Direction.OUTBOUND,
}


def sort_ledger(entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
    """Sort by timestamp ascending, tie-broken by hash."""
    return sorted(entries, key=lambda e: e.sort_key)


def canonical_address(address: str, chain_family: ChainFamily) -> str:
    """Store key for an address: EVM hex lowercased, Solana base58 unchanged."""
    address = address.strip()
    return address.lower() if chain_family is ChainFamily.EVM else address


def _same_address(a: str, b: str, chain_family: ChainFamily) -> bool:
    if chain_family is ChainFamily.EVM:
        return a.lower() == b.lower()
    return a == b


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO 8601 string, datetime, or unix seconds into an aware UTC datetime.
    Naive datetimes are taken as UTC. Raises ValueError/TypeError on bad input.
    """
    if isinstance(value, bool):
        raise TypeError("boolean is not a timestamp")
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        dt = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("empty timestamp")
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    else:
        raise TypeError(f"unsupported timestamp type {type(value).__name__}")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_amount(value: Any) -> Decimal:
    """Parse a decimal string or number into a finite, non-negative Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValueError("amount is not numeric")
    try:
        # str() keeps float inputs from carrying binary representation noise
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"amount {value!r} is not numeric") from e
    if not amount.is_finite():
        raise ValueError(f"amount {value!r} is not finite")
    if amount < 0:
        raise ValueError(f"amount {value!r} is negative")
    return amount


def _normalize_one(
    index: int,
    raw: RawTransfer,
    wallet_address: str,
    chain_family: ChainFamily,
) -> LedgerEntry:
    tx_hash = raw.get("hash")
    if not isinstance(tx_hash, str) or not tx_hash.strip():
        raise MalformedTransferError(f"transfer #{index} has no hash", index=index)
    tx_hash = tx_hash.strip()

    raw_ts = raw.get("timestamp")
    if raw_ts is None:
        raise MalformedTransferError(f"transfer {tx_hash} has no timestamp", index=index, tx_hash=tx_hash)
    try:
        timestamp = parse_timestamp(raw_ts)
    except (TypeError, ValueError, OverflowError) as e:
        raise MalformedTransferError(
            f"transfer {tx_hash} has an invalid timestamp: {e}", index=index, tx_hash=tx_hash
        ) from e

    raw_amount = raw.get("value", raw.get("amount"))
    if raw_amount is None:
        raise MalformedTransferError(f"transfer {tx_hash} has no amount", index=index, tx_hash=tx_hash)
    try:
        amount = parse_amount(raw_amount)
    except ValueError as e:
        raise MalformedTransferError(
            f"transfer {tx_hash} has an invalid amount: {e}", index=index, tx_hash=tx_hash
        ) from e

    sender = str(raw.get("from") or "")
    receiver = str(raw.get("to") or "")
    to_wallet = bool(receiver) and _same_address(receiver, wallet_address, chain_family)
    from_wallet = bool(sender) and _same_address(sender, wallet_address, chain_family)
    if to_wallet and from_wallet:
        # Holdings are unchanged; the entry is kept so its hash still dedups.
        logger.debug("self_transfer_zeroed", wallet_id=wallet_address, tx_hash=tx_hash, amount=str(amount))
        direction, counterparty, amount = Direction.INBOUND, sender, ZERO
    elif to_wallet:
        direction, counterparty = Direction.INBOUND, sender
    elif from_wallet:
        direction, counterparty = Direction.OUTBOUND, receiver
    else:
        marker = str(raw.get("type") or "").strip().lower()
        direction = _DIRECTION_MARKERS.get(marker)
        if direction is None:
            raise MalformedTransferError(
                f"transfer {tx_hash} does not involve wallet {wallet_address}",
                index=index,
                tx_hash=tx_hash,
            )
        counterparty = sender if direction is Direction.INBOUND else receiver

    return LedgerEntry(
        hash=tx_hash,
        timestamp=timestamp,
        direction=direction,
        amount=amount,
        counterparty=counterparty,
    )


def normalize(
    raw_transfers: Sequence[RawTransfer],
    wallet_address: str,
    chain_family: ChainFamily,
) -> list[LedgerEntry]:
    """
    Convert raw provider transfers into a sorted list of LedgerEntry.

    Raises MalformedTransferError on the first invalid record; nothing is
    returned for a partially valid batch.
    """
    entries = [
        _normalize_one(i, raw, wallet_address, chain_family)
        for i, raw in enumerate(raw_transfers)
    ]
    logger.debug(
        "transfers_normalized",
        wallet_id=wallet_address,
        chain_family=chain_family.value,
        entry_count=len(entries),
    )
    return sort_ledger(entries)


class TransactionNormalizer:
    """Normalizer bound to one chain family."""

    def __init__(self, chain_family: ChainFamily) -> None:
        self.chain_family = chain_family

    def normalize(self, raw_transfers: Sequence[RawTransfer], wallet_address: str) -> list[LedgerEntry]:
        return normalize(raw_transfers, wallet_address, self.chain_family)
