"""
Etherscan-style explorer provider: native ETH transfers for an EVM wallet.

Pages through module=account&action=txlist in ascending block order. Failed
transactions (isError == "1") are skipped; wei are converted to ETH with
Decimal. "No transactions found" is an empty history, not an error.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import requests

from backend_walletpnl.core.exceptions import ProviderUnavailableError
from backend_walletpnl.ledger.models import ChainFamily, RawTransfer
from backend_walletpnl.providers.base import ChainDataProvider
from backend_walletpnl.walletpnl_logging import get_logger

logger = get_logger(__name__)

WEI_PER_ETH = Decimal(10) ** 18
PAGE_SIZE = 1000
MAX_PAGES = 10
NO_TRANSACTIONS = "no transactions found"


def wei_to_eth(wei: str | int) -> str:
    return str(Decimal(int(wei)) / WEI_PER_ETH)


def to_raw_transfer(item: dict[str, Any]) -> RawTransfer | None:
    """Map one txlist row; None for failed transactions."""
    if str(item.get("isError", "0")) == "1":
        return None
    return {
        "hash": item.get("hash"),
        "timestamp": int(item["timeStamp"]) if item.get("timeStamp") else None,
        "value": wei_to_eth(item.get("value") or 0),
        "from": item.get("from") or "",
        "to": item.get("to") or "",
    }


class EvmExplorerProvider(ChainDataProvider):
    """Native transfer history from an Etherscan-compatible API (requests.Session)."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        timeout_sec: float = 30.0,
        max_pages: int = MAX_PAGES,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url
        self.api_key = api_key
        self.timeout_sec = timeout_sec
        self.max_pages = max_pages
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": "walletpnl/0.1"})

    def _get_page(self, address: str, page: int) -> list[dict[str, Any]]:
        params = {
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": "0",
            "endblock": "99999999",
            "page": str(page),
            "offset": str(PAGE_SIZE),
            "sort": "asc",
        }
        if self.api_key:
            params["apikey"] = self.api_key
        try:
            r = self._session.get(self.base_url, params=params, timeout=self.timeout_sec)
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("evm_explorer_request_error", error=str(e), page=page)
            raise ProviderUnavailableError(f"explorer txlist failed: {e}") from e

        result = data.get("result")
        if str(data.get("status")) == "1" and isinstance(result, list):
            return result
        message = str(data.get("message") or "")
        if NO_TRANSACTIONS in message.lower() or (isinstance(result, list) and not result):
            return []
        logger.warning("evm_explorer_error", message=message, result=str(result)[:200])
        raise ProviderUnavailableError(f"explorer txlist error: {message} {result}")

    def fetch_transfers(self, address: str, chain_family: ChainFamily) -> list[RawTransfer]:
        if chain_family is not ChainFamily.EVM:
            raise ProviderUnavailableError(f"EvmExplorerProvider cannot serve {chain_family.value}")
        transfers: list[RawTransfer] = []
        for page in range(1, self.max_pages + 1):
            rows = self._get_page(address, page)
            for item in rows:
                raw = to_raw_transfer(item)
                if raw is not None:
                    transfers.append(raw)
            if len(rows) < PAGE_SIZE:
                break
        logger.info("evm_transfers_fetched", wallet_id=address, transfer_count=len(transfers))
        return transfers
