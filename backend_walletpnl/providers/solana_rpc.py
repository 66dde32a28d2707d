"""
Solana JSON-RPC provider: native SOL transfers for a wallet.

getSignaturesForAddress (paged with `before`) then getTransaction
(jsonParsed) per signature. System Program transfer instructions touching the
wallet become raw transfers; when none are present, the wallet's own balance
delta (fee added back for the fee payer) is used. Failed transactions are
skipped. Lamports are converted to SOL with Decimal.
"""

from __future__ import annotations

import time
from decimal import Decimal
from typing import Any

import requests

from backend_walletpnl.config.env import mask_url
from backend_walletpnl.core.exceptions import ProviderUnavailableError
from backend_walletpnl.ledger.models import ChainFamily, RawTransfer
from backend_walletpnl.providers.base import ChainDataProvider
from backend_walletpnl.walletpnl_logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
LAMPORTS_PER_SOL = Decimal(1_000_000_000)

SIGNATURE_PAGE_LIMIT = 1000
MAX_SIGNATURES = 1000
RETRY_DELAY_SEC = 2.0
MAX_RETRIES = 3


def lamports_to_sol(lamports: int) -> str:
    return str(Decimal(int(lamports)) / LAMPORTS_PER_SOL)


def _account_keys(tx: dict[str, Any]) -> list[str]:
    """accountKeys as base58 strings (json and jsonParsed shapes) plus loaded addresses."""
    msg = (tx.get("transaction") or {}).get("message") or {}
    out: list[str] = []
    for k in msg.get("accountKeys") or []:
        if isinstance(k, str):
            out.append(k)
        elif isinstance(k, dict) and k.get("pubkey"):
            out.append(str(k["pubkey"]))
    loaded = (tx.get("meta") or {}).get("loadedAddresses") or {}
    for role in ("writable", "readonly"):
        for addr in loaded.get(role) or []:
            if isinstance(addr, str):
                out.append(addr)
    return out


def _all_instructions(tx: dict[str, Any]) -> list[dict[str, Any]]:
    """Top-level plus inner (CPI) instructions."""
    msg = (tx.get("transaction") or {}).get("message") or {}
    out = list(msg.get("instructions") or [])
    for block in (tx.get("meta") or {}).get("innerInstructions") or []:
        out.extend(block.get("instructions") or [])
    return out


def _native_transfers(tx: dict[str, Any]) -> list[tuple[str, str, int]]:
    """(source, destination, lamports) for each parsed System Program transfer."""
    edges: list[tuple[str, str, int]] = []
    for ix in _all_instructions(tx):
        if ix.get("programId") != SYSTEM_PROGRAM_ID and ix.get("program") != "system":
            continue
        parsed = ix.get("parsed")
        if not isinstance(parsed, dict) or parsed.get("type") not in ("transfer", "transferWithSeed"):
            continue
        info = parsed.get("info") or {}
        source, destination, lamports = info.get("source"), info.get("destination"), info.get("lamports")
        if source and destination and lamports is not None:
            edges.append((str(source), str(destination), int(lamports)))
    return edges


def _balance_delta_transfer(tx: dict[str, Any], wallet: str) -> tuple[str, str, int] | None:
    """
    Infer a single transfer from the wallet's lamport delta.
    Inbound counterparty = fee payer; outbound counterparty = largest gainer.
    """
    keys = _account_keys(tx)
    meta = tx.get("meta") or {}
    pre, post = meta.get("preBalances") or [], meta.get("postBalances") or []
    if wallet not in keys or len(pre) < len(keys) or len(post) < len(keys):
        return None
    idx = keys.index(wallet)
    delta = post[idx] - pre[idx]
    if idx == 0:
        delta += int(meta.get("fee") or 0)
    if delta > 0:
        return keys[0], wallet, delta
    if delta < 0:
        gains = [(post[i] - pre[i], i) for i in range(len(keys)) if i != idx]
        best_gain, best_idx = max(gains, default=(0, -1))
        counterparty = keys[best_idx] if best_gain > 0 else ""
        return wallet, counterparty, -delta
    return None


def extract_wallet_transfers(tx: dict[str, Any], wallet: str, signature: str) -> list[RawTransfer]:
    """
    Raw transfers involving wallet in one getTransaction result.
    Multiple transfers in a transaction get hashes signature, signature#1, ...
    """
    meta = tx.get("meta") or {}
    if meta.get("err") is not None:
        return []
    block_time = tx.get("blockTime")
    if block_time is None:
        logger.warning("solana_tx_no_block_time", signature=signature)
        return []
    edges = [e for e in _native_transfers(tx) if wallet in (e[0], e[1])]
    if not edges:
        inferred = _balance_delta_transfer(tx, wallet)
        edges = [inferred] if inferred else []
    out: list[RawTransfer] = []
    for n, (source, destination, lamports) in enumerate(edges):
        out.append(
            {
                "hash": signature if n == 0 else f"{signature}#{n}",
                "timestamp": int(block_time),
                "value": lamports_to_sol(lamports),
                "from": source,
                "to": destination,
            }
        )
    return out


class SolanaRpcProvider(ChainDataProvider):
    """Native SOL transfer history over Solana JSON-RPC (requests)."""

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_sec: float = 30.0,
        max_signatures: int = MAX_SIGNATURES,
        session: requests.Session | None = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.timeout_sec = timeout_sec
        self.max_signatures = max_signatures
        self._session = session or requests.Session()

    def _rpc_post(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": "walletpnl", "method": method, "params": params}
        for attempt in range(MAX_RETRIES):
            try:
                r = self._session.post(self.rpc_url, json=payload, timeout=self.timeout_sec)
                if r.status_code == 429 and attempt < MAX_RETRIES - 1:
                    logger.warning("solana_rpc_rate_limit", method=method, attempt=attempt + 1)
                    time.sleep(RETRY_DELAY_SEC)
                    continue
                r.raise_for_status()
                data = r.json()
            except (requests.RequestException, ValueError) as e:
                logger.warning("solana_rpc_request_error", method=method, error=str(e), rpc=mask_url(self.rpc_url))
                raise ProviderUnavailableError(f"Solana RPC {method} failed: {e}") from e
            err = data.get("error")
            if err:
                logger.warning("solana_rpc_error", method=method, error=str(err))
                raise ProviderUnavailableError(f"Solana RPC {method} error: {err}")
            return data.get("result")
        raise ProviderUnavailableError(f"Solana RPC {method} rate limited")

    def _signatures(self, address: str) -> list[dict[str, Any]]:
        sigs: list[dict[str, Any]] = []
        before: str | None = None
        while len(sigs) < self.max_signatures:
            opts: dict[str, Any] = {"limit": min(SIGNATURE_PAGE_LIMIT, self.max_signatures - len(sigs))}
            if before:
                opts["before"] = before
            page = self._rpc_post("getSignaturesForAddress", [address, opts]) or []
            if not page:
                break
            sigs.extend(page)
            before = page[-1].get("signature")
            if len(page) < opts["limit"]:
                break
        return sigs

    def fetch_transfers(self, address: str, chain_family: ChainFamily) -> list[RawTransfer]:
        if chain_family is not ChainFamily.SOLANA:
            raise ProviderUnavailableError(f"SolanaRpcProvider cannot serve {chain_family.value}")
        transfers: list[RawTransfer] = []
        sigs = self._signatures(address)
        # Signatures come newest first
        for info in reversed(sigs):
            signature = info.get("signature")
            if not signature or info.get("err") is not None:
                continue
            tx = self._rpc_post(
                "getTransaction",
                [signature, {"encoding": "jsonParsed", "maxSupportedTransactionVersion": 0}],
            )
            if not tx:
                continue
            transfers.extend(extract_wallet_transfers(tx, address, signature))
        logger.info(
            "solana_transfers_fetched",
            wallet_id=address,
            signature_count=len(sigs),
            transfer_count=len(transfers),
        )
        return transfers
