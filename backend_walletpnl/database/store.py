"""
Wallet record store: SQLAlchemy-backed, one record per address.

get(address) returns the stored WalletRecord; upsert_merge(address, family,
entries) unions new entries into the stored ledger by hash (stored entry wins)
and is idempotent. unit_of_work(address) holds a per-address lock and a single
transaction so merge, recompute and summary persistence commit together or not
at all. The store holds no business logic: it never computes summaries.

Uses any SQLAlchemy URL; SQLite by default.
"""

from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Iterator

from sqlalchemy import create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend_walletpnl.core.exceptions import (
    ChainFamilyMismatchError,
    StoreUnavailableError,
    WalletNotFoundError,
)
from backend_walletpnl.database.models import Base, LedgerEntryRow, WalletRecordRow
from backend_walletpnl.ledger.models import (
    ChainFamily,
    Direction,
    LedgerEntry,
    PositionSummary,
    WalletRecord,
)
from backend_walletpnl.ledger.normalizer import sort_ledger
from backend_walletpnl.walletpnl_logging import get_logger

logger = get_logger(__name__)

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def _utcnow_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_naive_utc(dt: datetime) -> datetime:
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _from_naive_utc(dt: datetime) -> datetime:
    return dt.replace(tzinfo=timezone.utc)


def _entry_from_row(row: LedgerEntryRow) -> LedgerEntry:
    return LedgerEntry(
        hash=row.hash,
        timestamp=_from_naive_utc(row.timestamp),
        direction=Direction(row.direction),
        amount=Decimal(row.amount),
        counterparty=row.counterparty or "",
    )


def _record_from_row(row: WalletRecordRow) -> WalletRecord:
    summary = None
    if row.summary_json:
        summary = PositionSummary.from_dict(json.loads(row.summary_json))
    return WalletRecord(
        address=row.address,
        chain_family=ChainFamily(row.chain_family),
        ledger=sort_ledger(_entry_from_row(e) for e in row.entries),
        last_computed_summary=summary,
        created_at=_from_naive_utc(row.created_at),
        updated_at=_from_naive_utc(row.updated_at),
    )


class WalletUnitOfWork:
    """
    Staged changes for one address inside a single transaction.

    Only valid inside WalletRecordStore.unit_of_work(); commits on normal exit.
    """

    def __init__(self, session: Session, address: str) -> None:
        self._session = session
        self.address = address

    def _load_row(self) -> WalletRecordRow | None:
        stmt = select(WalletRecordRow).where(WalletRecordRow.address == self.address)
        return self._session.execute(stmt).scalar_one_or_none()

    def get(self) -> WalletRecord | None:
        row = self._load_row()
        return _record_from_row(row) if row is not None else None

    def upsert_merge(self, chain_family: ChainFamily, new_entries: Iterable[LedgerEntry]) -> WalletRecord:
        """Union new_entries into the ledger by hash; create the record on first sight."""
        now = _utcnow_naive()
        row = self._load_row()
        if row is None:
            row = WalletRecordRow(
                address=self.address,
                chain_family=chain_family.value,
                created_at=now,
                updated_at=now,
            )
            self._session.add(row)
            logger.info("wallet_record_created", wallet_id=self.address, chain_family=chain_family.value)
        elif row.chain_family != chain_family.value:
            raise ChainFamilyMismatchError(self.address, ChainFamily(row.chain_family), chain_family)

        seen = {e.hash for e in row.entries}
        added = 0
        for entry in sort_ledger(new_entries):
            if entry.hash in seen:
                continue
            seen.add(entry.hash)
            row.entries.append(
                LedgerEntryRow(
                    hash=entry.hash,
                    timestamp=_to_naive_utc(entry.timestamp),
                    direction=entry.direction.value,
                    amount=str(entry.amount),
                    counterparty=entry.counterparty,
                )
            )
            added += 1
        if added:
            row.updated_at = now
        self._session.flush()
        logger.info("wallet_ledger_merged", wallet_id=self.address, added=added, entry_count=len(seen))
        return _record_from_row(row)

    def save_summary(self, summary: PositionSummary) -> None:
        row = self._load_row()
        if row is None:
            raise WalletNotFoundError(self.address)
        row.summary_json = json.dumps(summary.to_dict())
        row.updated_at = _utcnow_naive()
        self._session.flush()


class WalletRecordStore:
    """Persistence for WalletRecord; per-address locks serialize read-modify-write."""

    def __init__(self, database_url: str) -> None:
        connect_args = {}
        engine_kwargs = {}
        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            if database_url in _MEMORY_URLS:
                engine_kwargs["poolclass"] = StaticPool
        self._engine = create_engine(
            database_url,
            connect_args=connect_args,
            pool_pre_ping=True,
            **engine_kwargs,
        )
        self._session_factory = sessionmaker(bind=self._engine, autoflush=False, expire_on_commit=False)
        self._locks: dict[str, threading.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._locks_guard = threading.Lock()
        logger.info("wallet_store_engine", url=database_url.split("?")[0].split("//")[-1])

    def init_db(self) -> None:
        """Create tables if they do not exist."""
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"could not initialize wallet store: {e}") from e

    def dispose(self) -> None:
        self._engine.dispose()

    @contextmanager
    def _address_lock(self, address: str) -> Iterator[None]:
        """Hold the lock for address; the registry entry lives only while someone holds or waits on it."""
        with self._locks_guard:
            lock = self._locks.setdefault(address, threading.Lock())
            self._lock_users[address] = self._lock_users.get(address, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                self._lock_users[address] -= 1
                if not self._lock_users[address]:
                    del self._lock_users[address]
                    del self._locks[address]

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Single session. Commits on success, rolls back on any error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("wallet_store_error", error=str(e))
            raise StoreUnavailableError(f"wallet store failure: {e}") from e
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def unit_of_work(self, address: str) -> Iterator[WalletUnitOfWork]:
        """Hold the address lock and one transaction for the whole block."""
        with self._address_lock(address):
            with self._session_scope() as session:
                yield WalletUnitOfWork(session, address)

    def get(self, address: str) -> WalletRecord:
        """Return the stored record; raises WalletNotFoundError if the address is unknown."""
        with self._session_scope() as session:
            record = WalletUnitOfWork(session, address).get()
        if record is None:
            raise WalletNotFoundError(address)
        return record

    def upsert_merge(
        self,
        address: str,
        chain_family: ChainFamily,
        new_entries: Iterable[LedgerEntry],
    ) -> WalletRecord:
        """Merge entries into the stored ledger in its own transaction."""
        with self.unit_of_work(address) as uow:
            return uow.upsert_merge(chain_family, new_entries)

    def list_addresses(self, *, limit: int = 5000) -> list[str]:
        """Known addresses, most recently updated first."""
        with self._session_scope() as session:
            stmt = (
                select(WalletRecordRow.address)
                .order_by(WalletRecordRow.updated_at.desc(), WalletRecordRow.id.desc())
                .limit(limit)
            )
            return list(session.execute(stmt).scalars())


def get_store(database_url: str) -> WalletRecordStore:
    """Return a WalletRecordStore with its schema ensured."""
    store = WalletRecordStore(database_url)
    store.init_db()
    return store
