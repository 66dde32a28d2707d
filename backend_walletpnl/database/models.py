"""
SQLAlchemy models for the wallet record store.

One wallet_records row per address; its ledger lives in ledger_entries with
UNIQUE(wallet_id, hash). Amounts are strings so no precision is lost.
"""

from __future__ import annotations

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class WalletRecordRow(Base):
    """One analyzed wallet: address, fixed chain family, last computed summary (JSON)."""

    __tablename__ = "wallet_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    address = Column(String(128), unique=True, nullable=False, index=True)
    chain_family = Column(String(16), nullable=False)
    summary_json = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False)  # naive UTC
    updated_at = Column(DateTime, nullable=False, index=True)

    entries = relationship(
        "LedgerEntryRow",
        back_populates="wallet",
        cascade="all, delete-orphan",
        order_by="LedgerEntryRow.timestamp",
    )


class LedgerEntryRow(Base):
    """Single canonical transfer; immutable once inserted."""

    __tablename__ = "ledger_entries"
    __table_args__ = (UniqueConstraint("wallet_id", "hash", name="uq_ledger_entries_wallet_hash"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    wallet_id = Column(Integer, ForeignKey("wallet_records.id", ondelete="CASCADE"), nullable=False, index=True)
    hash = Column(String(128), nullable=False)
    timestamp = Column(DateTime, nullable=False, index=True)  # naive UTC
    direction = Column(String(8), nullable=False)
    amount = Column(String(80), nullable=False)
    counterparty = Column(String(128), nullable=False, default="")

    wallet = relationship("WalletRecordRow", back_populates="entries")
