"""
Main entrypoint: build settings once, configure logging from them, then run
the FastAPI server.

Env: JWT_SECRET (required), WALLETPNL_DB_URL, PROVIDER_MODE, SOLANA_RPC_URL,
ETHERSCAN_API_KEY, AUTH_EMAIL, AUTH_PASSWORD, API_HOST, API_PORT, LOG_LEVEL,
LOG_FORMAT.

API only: uvicorn backend_walletpnl.api_server.app:app_factory --factory --port 5000
"""

import sys

from backend_walletpnl.walletpnl_logging import configure_structlog, get_logger

logger = get_logger("main")


def main() -> None:
    """Load settings, configure logging, build the app with its store and provider, serve."""
    from backend_walletpnl.config.settings import get_settings
    from backend_walletpnl.core.exceptions import ConfigError

    try:
        settings = get_settings()
    except ConfigError as e:
        # Default logging configuration is still active here
        logger.error("main_config_error", detail=e.message)
        sys.exit(1)
    configure_structlog(settings.log_level, settings.log_format)

    from backend_walletpnl.api_server.server import create_app
    import uvicorn

    app = create_app(settings)
    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        provider_mode=settings.provider_mode,
        overdraft_policy=settings.overdraft_policy,
        log_level=settings.log_level,
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
