"""
Application settings.

Settings are built once at process start (get_settings) and passed
explicitly to the store, providers and API app; nothing reads secrets
from module-level constants.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_walletpnl.config.env import (
    env_float,
    env_int,
    env_str,
    get_database_url,
    get_evm_explorer_url,
    get_solana_rpc_url,
    load_walletpnl_env,
)
from backend_walletpnl.core.exceptions import ConfigError
from backend_walletpnl.walletpnl_logging import LOG_FORMATS

PROVIDER_MODES = ("static", "live")
OVERDRAFT_POLICIES = ("strict", "opening_lot")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    """Typed configuration for store, providers, auth and API server."""

    database_url: str
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 60
    auth_email: str = ""
    auth_password: str = ""
    provider_mode: str = "static"
    solana_rpc_url: str = ""
    evm_explorer_url: str = ""
    etherscan_api_key: str = ""
    provider_timeout_sec: float = 30.0
    overdraft_policy: str = "strict"
    api_host: str = "0.0.0.0"
    api_port: int = 5000
    log_level: str = "INFO"
    log_format: str = "json"

    def __post_init__(self) -> None:
        if self.provider_mode not in PROVIDER_MODES:
            raise ConfigError(f"PROVIDER_MODE must be one of {PROVIDER_MODES}, got {self.provider_mode!r}")
        if self.overdraft_policy not in OVERDRAFT_POLICIES:
            raise ConfigError(
                f"OVERDRAFT_POLICY must be one of {OVERDRAFT_POLICIES}, got {self.overdraft_policy!r}"
            )
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"LOG_LEVEL must be one of {LOG_LEVELS}, got {self.log_level!r}")
        if self.log_format not in LOG_FORMATS:
            raise ConfigError(f"LOG_FORMAT must be one of {LOG_FORMATS}, got {self.log_format!r}")

    @property
    def login_enabled(self) -> bool:
        return bool(self.auth_email and self.auth_password)


def get_settings(*, require_secret: bool = True) -> Settings:
    """
    Build Settings from environment variables (and .env).

    Raises ConfigError when JWT_SECRET is missing and require_secret is True,
    or when an enum-like setting has an unknown value.
    """
    load_walletpnl_env()
    secret = env_str("JWT_SECRET")
    if require_secret and not secret:
        raise ConfigError("JWT_SECRET must be set")
    return Settings(
        database_url=get_database_url(),
        jwt_secret=secret,
        jwt_algorithm=env_str("JWT_ALGORITHM", "HS256"),
        jwt_expiration_minutes=env_int("JWT_EXPIRATION_MINUTES", 60),
        auth_email=env_str("AUTH_EMAIL"),
        auth_password=env_str("AUTH_PASSWORD"),
        provider_mode=env_str("PROVIDER_MODE", "static").lower(),
        solana_rpc_url=get_solana_rpc_url(),
        evm_explorer_url=get_evm_explorer_url(),
        etherscan_api_key=env_str("ETHERSCAN_API_KEY"),
        provider_timeout_sec=env_float("PROVIDER_TIMEOUT_SEC", 30.0),
        overdraft_policy=env_str("OVERDRAFT_POLICY", "strict").lower(),
        api_host=env_str("API_HOST", "0.0.0.0"),
        api_port=env_int("API_PORT", 5000),
        log_level=env_str("LOG_LEVEL", "INFO").upper(),
        log_format=env_str("LOG_FORMAT", "json").lower(),
    )
