"""
Analysis pipeline entrypoint used by the API server.
"""

from backend_walletpnl.analysis.orchestrator import AnalysisOrchestrator, OverdraftPolicy

__all__ = ["AnalysisOrchestrator", "OverdraftPolicy"]
