"""
Analysis orchestrator: fetch → normalize → merge → recompute → persist.

The provider fetch runs outside the per-address lock, so an abandoned request
can drop it freely. Merge, recompute and summary persistence run in one store
unit of work: any error (overdraft, unsorted ledger, store failure) rolls the
whole unit back and the stored record stays as it was.
"""

from __future__ import annotations

from enum import Enum

from backend_walletpnl.core.exceptions import OverdraftError, WalletNotFoundError
from backend_walletpnl.database.store import WalletRecordStore
from backend_walletpnl.ledger.cost_basis import CostBasisEngine, required_opening_balance
from backend_walletpnl.ledger.models import ChainFamily, LedgerEntry, PositionSummary, WalletRecord
from backend_walletpnl.ledger.normalizer import canonical_address, normalize
from backend_walletpnl.providers.base import ChainDataProvider
from backend_walletpnl.walletpnl_logging import bind_wallet


class OverdraftPolicy(str, Enum):
    """What the orchestrator does when the engine reports an overdraft."""

    STRICT = "strict"
    OPENING_LOT = "opening_lot"


class AnalysisOrchestrator:
    """Ties provider, normalizer, store and cost basis engine together."""

    def __init__(
        self,
        provider: ChainDataProvider,
        store: WalletRecordStore,
        *,
        engine: CostBasisEngine | None = None,
        overdraft_policy: OverdraftPolicy | str = OverdraftPolicy.STRICT,
    ) -> None:
        self.provider = provider
        self.store = store
        self.engine = engine or CostBasisEngine()
        self.overdraft_policy = OverdraftPolicy(overdraft_policy)

    def _compute(self, address: str, ledger: list[LedgerEntry]) -> PositionSummary:
        try:
            return self.engine.compute(ledger)
        except OverdraftError as e:
            if self.overdraft_policy is not OverdraftPolicy.OPENING_LOT:
                raise
            # History before the provider's cutoff is treated as one opening lot.
            opening = required_opening_balance(ledger)
            bind_wallet(address).warning(
                "overdraft_opening_lot_applied",
                tx_hash=e.tx_hash,
                shortfall=str(e.shortfall),
                opening_balance=str(opening),
            )
            return self.engine.compute(ledger, opening_balance=opening)

    def analyze(self, address: str, chain_family: ChainFamily) -> PositionSummary:
        """Analyze one wallet, persist and return its summary."""
        return self.analyze_record(address, chain_family).last_computed_summary

    def analyze_record(self, address: str, chain_family: ChainFamily) -> WalletRecord:
        """
        Analyze one wallet and persist the result; returns the merged record
        with its fresh summary, as committed.

        Raises MalformedTransferError, UnsortedLedgerError, OverdraftError,
        ChainFamilyMismatchError, ProviderUnavailableError (or
        StoreUnavailableError); none of them leaves a partial record behind.
        """
        key = canonical_address(address, chain_family)
        log = bind_wallet(key)
        log.info("wallet_analysis_started", chain_family=chain_family.value)

        raw = self.provider.fetch_transfers(key, chain_family)
        entries = normalize(raw, key, chain_family)

        with self.store.unit_of_work(key) as uow:
            record = uow.upsert_merge(chain_family, entries)
            summary = self._compute(key, record.ledger)
            uow.save_summary(summary)
            record.last_computed_summary = summary

        log.info(
            "wallet_analysis_completed",
            chain_family=chain_family.value,
            fetched=len(entries),
            entry_count=summary.entry_count,
            current_balance=str(summary.current_balance),
        )
        return record

    def record(self, address: str, chain_family: ChainFamily) -> WalletRecord:
        """Stored record for the address (raises WalletNotFoundError)."""
        return self.store.get(canonical_address(address, chain_family))

    def cached_summary(self, address: str, chain_family: ChainFamily) -> PositionSummary:
        """Last persisted summary without fetching; WalletNotFoundError if never computed."""
        record = self.record(address, chain_family)
        if record.last_computed_summary is None:
            raise WalletNotFoundError(record.address)
        return record.last_computed_summary
