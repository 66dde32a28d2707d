"""
FastAPI server: login plus authenticated wallet analysis.

POST /api/login issues a JWT; GET /api/wallet/{address} classifies the
address, runs the analysis pipeline and returns balance, cost basis and the
stored ledger; GET /api/wallet/{address}/summary returns the cached summary
without fetching. Domain errors map to JSON {"error", "detail"} responses.
"""

from __future__ import annotations

from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from backend_walletpnl import __version__
from backend_walletpnl.analysis.orchestrator import AnalysisOrchestrator
from backend_walletpnl.api_server.auth import (
    check_credentials,
    create_access_token,
    require_user,
)
from backend_walletpnl.api_server.classifier import classify
from backend_walletpnl.config.settings import Settings
from backend_walletpnl.core.exceptions import AuthenticationError, WalletPnlError
from backend_walletpnl.database.store import WalletRecordStore, get_store
from backend_walletpnl.ledger.models import PositionSummary
from backend_walletpnl.ledger.normalizer import canonical_address
from backend_walletpnl.providers import ChainDataProvider, build_provider
from backend_walletpnl.walletpnl_logging import get_logger

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Request / response models
# -----------------------------------------------------------------------------


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=256)
    password: str = Field(..., min_length=1, max_length=256)


class LoginResponse(BaseModel):
    token: str


class CostBasisModel(BaseModel):
    """PositionSummary with decimals as strings."""

    currentBalance: str
    totalInvested: str
    realizedPNL: str
    unrealizedPNL: str = Field("0", description="Placeholder; no market price source")
    openingBalance: str = "0"
    entryCount: int = 0


class LedgerEntryModel(BaseModel):
    hash: str
    timestamp: str
    direction: str
    amount: str
    counterparty: str


class WalletAnalysisResponse(BaseModel):
    """GET /api/wallet/{address} response."""

    address: str = Field(..., description="Wallet address as stored")
    chain: str = Field(..., description="EVM or Solana")
    balance: str = Field(..., description="Current balance (native units)")
    costBasis: CostBasisModel
    transactions: list[LedgerEntryModel] = Field(default_factory=list)


class WalletSummaryResponse(BaseModel):
    address: str
    chain: str
    costBasis: CostBasisModel


def _cost_basis(summary: PositionSummary) -> CostBasisModel:
    return CostBasisModel(**summary.to_dict())


def _orchestrator(request: Request) -> AnalysisOrchestrator:
    return request.app.state.orchestrator


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------


def create_app(
    settings: Settings,
    *,
    store: WalletRecordStore | None = None,
    provider: ChainDataProvider | None = None,
) -> FastAPI:
    """Build the API app; store and provider default to ones built from settings."""
    if store is None:
        store = get_store(settings.database_url)
    if provider is None:
        provider = build_provider(settings)

    app = FastAPI(
        title="Backend WalletPnL API",
        description="Cost basis and PnL for EVM and Solana wallets.",
        version=__version__,
    )
    app.state.settings = settings
    app.state.orchestrator = AnalysisOrchestrator(
        provider, store, overdraft_policy=settings.overdraft_policy
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(WalletPnlError)
    async def _walletpnl_error(request: Request, exc: WalletPnlError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("api_request_failed", path=request.url.path, error=exc.code, detail=exc.message)
        else:
            logger.info("api_request_rejected", path=request.url.path, error=exc.code)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.post("/api/login", response_model=LoginResponse)
    def login(body: LoginRequest) -> LoginResponse:
        if not check_credentials(settings, body.email, body.password):
            raise AuthenticationError("Invalid credentials")
        logger.info("api_login", email=body.email)
        return LoginResponse(token=create_access_token(settings, body.email))

    @app.get("/api/wallet/{address}", response_model=WalletAnalysisResponse)
    def analyze_wallet(
        address: str,
        user: dict[str, Any] = Depends(require_user),
        orchestrator: AnalysisOrchestrator = Depends(_orchestrator),
    ) -> WalletAnalysisResponse:
        """Fetch, merge and recompute the wallet; returns the fresh summary and stored ledger."""
        chain_family = classify(address)
        record = orchestrator.analyze_record(address, chain_family)
        summary = record.last_computed_summary
        return WalletAnalysisResponse(
            address=record.address,
            chain=chain_family.value,
            balance=str(summary.current_balance),
            costBasis=_cost_basis(summary),
            transactions=[LedgerEntryModel(**e.to_dict()) for e in record.ledger],
        )

    @app.get("/api/wallet/{address}/summary", response_model=WalletSummaryResponse)
    def wallet_summary(
        address: str,
        user: dict[str, Any] = Depends(require_user),
        orchestrator: AnalysisOrchestrator = Depends(_orchestrator),
    ) -> WalletSummaryResponse:
        """Last persisted summary; 404 if the wallet was never analyzed."""
        chain_family = classify(address)
        summary = orchestrator.cached_summary(address, chain_family)
        return WalletSummaryResponse(
            address=canonical_address(address, chain_family),
            chain=chain_family.value,
            costBasis=_cost_basis(summary),
        )

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness check: API is up."""
        return {"status": "ok"}

    return app
