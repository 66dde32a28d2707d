"""
ASGI application factory.

Run with: uvicorn backend_walletpnl.api_server.app:app_factory --factory --host 0.0.0.0 --port 5000
"""

from fastapi import FastAPI

from backend_walletpnl.api_server.server import create_app
from backend_walletpnl.config.settings import get_settings
from backend_walletpnl.walletpnl_logging import configure_structlog


def app_factory() -> FastAPI:
    """Build the app from environment settings (JWT_SECRET required); logging follows LOG_LEVEL/LOG_FORMAT."""
    settings = get_settings()
    configure_structlog(settings.log_level, settings.log_format)
    return create_app(settings)
