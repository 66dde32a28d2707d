"""
Tests for chain data providers with mocked HTTP sessions (no network).
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests

from backend_walletpnl.config.settings import Settings
from backend_walletpnl.core.exceptions import ProviderUnavailableError
from backend_walletpnl.ledger.models import ChainFamily, Direction
from backend_walletpnl.ledger.normalizer import normalize
from backend_walletpnl.providers import build_provider
from backend_walletpnl.providers.base import RoutingProvider, StaticTransferProvider
from backend_walletpnl.providers.evm_explorer import EvmExplorerProvider, wei_to_eth
from backend_walletpnl.providers.solana_rpc import (
    SYSTEM_PROGRAM_ID,
    SolanaRpcProvider,
    extract_wallet_transfers,
    lamports_to_sol,
)

from conftest import EVM_WALLET, SOL_WALLET, SOL_WALLET_2

VALID_SIG = "5VERv8NMvzbJMEkV8xnrLkEaWRtSz9CosKDYjCJjBRnbJLgp8uirBgmQpjKhoR4tjF3ZpRzrFmBV6UjKdiSZkQUW"


def _response(payload, status_code=200):
    r = MagicMock()
    r.status_code = status_code
    r.json.return_value = payload
    if status_code >= 400:
        r.raise_for_status.side_effect = requests.HTTPError(f"{status_code}")
    return r


def _transfer_tx(source, destination, lamports, block_time=1700000000, err=None):
    return {
        "blockTime": block_time,
        "meta": {"err": err, "fee": 5000, "preBalances": [], "postBalances": [], "innerInstructions": []},
        "transaction": {
            "message": {
                "accountKeys": [{"pubkey": source}, {"pubkey": destination}, {"pubkey": SYSTEM_PROGRAM_ID}],
                "instructions": [
                    {
                        "programId": SYSTEM_PROGRAM_ID,
                        "program": "system",
                        "parsed": {
                            "type": "transfer",
                            "info": {"source": source, "destination": destination, "lamports": lamports},
                        },
                    }
                ],
            },
            "signatures": [VALID_SIG],
        },
    }


# --- Static / routing ---


def test_static_provider_defaults_and_overrides():
    p = StaticTransferProvider()
    evm = p.fetch_transfers(EVM_WALLET, ChainFamily.EVM)
    assert [t["hash"] for t in evm] == ["0x123", "0x456"]
    assert evm[0]["to"] == EVM_WALLET
    p.set_transfers(SOL_WALLET, [])
    assert p.fetch_transfers(SOL_WALLET, ChainFamily.SOLANA) == []
    assert StaticTransferProvider(use_defaults=False).fetch_transfers(SOL_WALLET, ChainFamily.SOLANA) == []


def test_routing_provider_dispatch_and_missing_family():
    sol = MagicMock()
    sol.fetch_transfers.return_value = [{"hash": "x"}]
    router = RoutingProvider({ChainFamily.SOLANA: sol})
    assert router.fetch_transfers(SOL_WALLET, ChainFamily.SOLANA) == [{"hash": "x"}]
    with pytest.raises(ProviderUnavailableError):
        router.fetch_transfers(EVM_WALLET, ChainFamily.EVM)


def test_build_provider_modes():
    static = build_provider(Settings(database_url="sqlite://"))
    assert isinstance(static, StaticTransferProvider)
    live = build_provider(Settings(database_url="sqlite://", provider_mode="live", solana_rpc_url="http://rpc"))
    assert isinstance(live, RoutingProvider)


# --- Solana RPC ---


def test_lamports_to_sol():
    assert Decimal(lamports_to_sol(1_500_000_000)) == Decimal("1.5")
    assert Decimal(lamports_to_sol(1)) == Decimal("0.000000001")


def test_extract_system_transfer_inbound():
    tx = _transfer_tx(SOL_WALLET_2, SOL_WALLET, 2_000_000_000)
    out = extract_wallet_transfers(tx, SOL_WALLET, VALID_SIG)
    assert len(out) == 1
    assert out[0]["hash"] == VALID_SIG
    assert out[0]["from"] == SOL_WALLET_2
    assert Decimal(out[0]["value"]) == Decimal("2")
    entries = normalize(out, SOL_WALLET, ChainFamily.SOLANA)
    assert entries[0].direction is Direction.INBOUND


def test_system_self_transfer_normalizes_to_zero():
    tx = _transfer_tx(SOL_WALLET, SOL_WALLET, 3_000_000_000)
    out = extract_wallet_transfers(tx, SOL_WALLET, VALID_SIG)
    entries = normalize(out, SOL_WALLET, ChainFamily.SOLANA)
    assert len(entries) == 1
    assert entries[0].amount == Decimal("0")


def test_extract_skips_failed_tx():
    tx = _transfer_tx(SOL_WALLET_2, SOL_WALLET, 1000, err={"InstructionError": [0, "Custom"]})
    assert extract_wallet_transfers(tx, SOL_WALLET, VALID_SIG) == []


def test_extract_balance_delta_fallback():
    """No system transfer: the wallet's own delta (fee added back when it pays) is used."""
    tx = {
        "blockTime": 1700000000,
        "meta": {"err": None, "fee": 5000, "preBalances": [10_000_000_000, 0], "postBalances": [8_999_995_000, 1_000_000_000]},
        "transaction": {"message": {"accountKeys": [SOL_WALLET, SOL_WALLET_2], "instructions": []}},
    }
    out = extract_wallet_transfers(tx, SOL_WALLET, VALID_SIG)
    assert len(out) == 1
    assert out[0]["from"] == SOL_WALLET
    assert out[0]["to"] == SOL_WALLET_2
    assert Decimal(out[0]["value"]) == Decimal("1")


def test_solana_provider_fetch():
    session = MagicMock()

    def post(url, json, timeout):
        if json["method"] == "getSignaturesForAddress":
            return _response({"result": [{"signature": VALID_SIG, "err": None, "blockTime": 1700000000}]})
        return _response({"result": _transfer_tx(SOL_WALLET, SOL_WALLET_2, 500_000_000)})

    session.post.side_effect = post
    provider = SolanaRpcProvider("http://rpc", session=session)
    transfers = provider.fetch_transfers(SOL_WALLET, ChainFamily.SOLANA)
    assert len(transfers) == 1
    assert transfers[0]["to"] == SOL_WALLET_2
    assert Decimal(transfers[0]["value"]) == Decimal("0.5")


def test_solana_provider_rpc_error_raises():
    session = MagicMock()
    session.post.return_value = _response({"error": {"code": -32005, "message": "node behind"}})
    provider = SolanaRpcProvider("http://rpc", session=session)
    with pytest.raises(ProviderUnavailableError):
        provider.fetch_transfers(SOL_WALLET, ChainFamily.SOLANA)


def test_solana_provider_transport_error_raises():
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("refused")
    provider = SolanaRpcProvider("http://rpc", session=session)
    with pytest.raises(ProviderUnavailableError):
        provider.fetch_transfers(SOL_WALLET, ChainFamily.SOLANA)


def test_solana_provider_rate_limit_then_gives_up():
    session = MagicMock()
    session.post.return_value = _response({}, status_code=429)
    provider = SolanaRpcProvider("http://rpc", session=session)
    with patch("backend_walletpnl.providers.solana_rpc.time.sleep"):
        with pytest.raises(ProviderUnavailableError):
            provider.fetch_transfers(SOL_WALLET, ChainFamily.SOLANA)


def test_solana_provider_rejects_evm():
    with pytest.raises(ProviderUnavailableError):
        SolanaRpcProvider("http://rpc", session=MagicMock()).fetch_transfers(EVM_WALLET, ChainFamily.EVM)


# --- EVM explorer ---


def test_wei_to_eth():
    assert Decimal(wei_to_eth("1000000000000000000")) == Decimal("1")
    assert Decimal(wei_to_eth(1)) == Decimal("1E-18")


def test_evm_provider_fetch_skips_failed():
    session = MagicMock()
    session.headers = {}
    session.get.return_value = _response({
        "status": "1",
        "message": "OK",
        "result": [
            {"hash": "0xa", "timeStamp": "1700000000", "from": "0xfeed", "to": EVM_WALLET, "value": "1500000000000000000", "isError": "0"},
            {"hash": "0xb", "timeStamp": "1700000100", "from": EVM_WALLET, "to": "0xbeef", "value": "1", "isError": "1"},
        ],
    })
    provider = EvmExplorerProvider("http://explorer", "KEY", session=session)
    transfers = provider.fetch_transfers(EVM_WALLET, ChainFamily.EVM)
    assert [t["hash"] for t in transfers] == ["0xa"]
    assert Decimal(transfers[0]["value"]) == Decimal("1.5")
    params = session.get.call_args.kwargs["params"]
    assert params["action"] == "txlist"
    assert params["apikey"] == "KEY"


def test_evm_provider_no_transactions():
    session = MagicMock()
    session.headers = {}
    session.get.return_value = _response({"status": "0", "message": "No transactions found", "result": []})
    provider = EvmExplorerProvider("http://explorer", session=session)
    assert provider.fetch_transfers(EVM_WALLET, ChainFamily.EVM) == []


def test_evm_provider_error_status():
    session = MagicMock()
    session.headers = {}
    session.get.return_value = _response({"status": "0", "message": "NOTOK", "result": "Invalid API Key"})
    provider = EvmExplorerProvider("http://explorer", session=session)
    with pytest.raises(ProviderUnavailableError):
        provider.fetch_transfers(EVM_WALLET, ChainFamily.EVM)


def test_evm_provider_http_error():
    session = MagicMock()
    session.headers = {}
    session.get.return_value = _response({}, status_code=502)
    provider = EvmExplorerProvider("http://explorer", session=session)
    with pytest.raises(ProviderUnavailableError):
        provider.fetch_transfers(EVM_WALLET, ChainFamily.EVM)
