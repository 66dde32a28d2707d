"""
Pytest fixtures for WalletPnL tests. Uses a temporary SQLite DB per test.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from backend_walletpnl.ledger.models import Direction, LedgerEntry

EVM_WALLET = "0x1234567890abcdef1234567890abcdef12345678"
# Valid Solana pubkey (base58, 32 bytes)
SOL_WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
SOL_WALLET_2 = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"

T0 = datetime(2023, 1, 1, tzinfo=timezone.utc)


def make_entry(tx_hash: str, day: int, direction: str, amount: str, counterparty: str = "cp") -> LedgerEntry:
    """LedgerEntry at T0 + day days; direction 'in' or 'out'."""
    return LedgerEntry(
        hash=tx_hash,
        timestamp=T0 + timedelta(days=day),
        direction=Direction(direction),
        amount=Decimal(amount),
        counterparty=counterparty,
    )


@pytest.fixture
def store(tmp_path):
    """WalletRecordStore on a fresh SQLite file."""
    from backend_walletpnl.database.store import get_store

    s = get_store(f"sqlite:///{tmp_path / 'walletpnl.db'}")
    yield s
    s.dispose()


@pytest.fixture
def provider():
    """Static provider with no default fixtures; tests set transfers per address."""
    from backend_walletpnl.providers.base import StaticTransferProvider

    return StaticTransferProvider(use_defaults=False)


@pytest.fixture
def orchestrator(provider, store):
    from backend_walletpnl.analysis.orchestrator import AnalysisOrchestrator

    return AnalysisOrchestrator(provider, store)


@pytest.fixture
def settings(tmp_path):
    from backend_walletpnl.config.settings import Settings

    return Settings(
        database_url=f"sqlite:///{tmp_path / 'api.db'}",
        jwt_secret="test-secret-key-with-enough-length-for-hs256",
        auth_email="user@example.com",
        auth_password="password",
    )


@pytest.fixture
def client(settings, store):
    """FastAPI TestClient over the default fixture provider."""
    from fastapi.testclient import TestClient

    from backend_walletpnl.api_server.server import create_app
    from backend_walletpnl.providers.base import StaticTransferProvider

    app = create_app(settings, store=store, provider=StaticTransferProvider())
    return TestClient(app)


@pytest.fixture
def auth_headers(client):
    r = client.post("/api/login", json={"email": "user@example.com", "password": "password"})
    assert r.status_code == 200
    return {"Authorization": f"Bearer {r.json()['token']}"}
