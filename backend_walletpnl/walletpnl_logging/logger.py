"""
Structured logging for WalletPnL.

One JSON object per line on stdout with timestamp, level, logger name and
event_type (or structlog's console renderer when the format is "console").

The entrypoint calls configure_structlog(settings.log_level,
settings.log_format) once Settings is loaded. Until then a default INFO/json
configuration is active, so imports and tests can log. Loggers returned by
get_logger are lazy: each call renders with the configuration active at that
moment, not the one active when the module was imported.

No backend_walletpnl imports here, to avoid circular imports.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog

LOG_FORMATS = ("json", "console")

ROOT_LOGGER_NAME = "backend_walletpnl"


def _event_type(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Emit structlog's event under event_type, mirrored to message."""
    event = event_dict.pop("event", None)
    if event is not None:
        event_dict.setdefault("event_type", event)
        event_dict.setdefault("message", str(event))
    return event_dict


def level_value(level: str) -> int:
    """Numeric stdlib level for a name like "debug"; unknown names mean INFO."""
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO


def configure_structlog(level: str = "INFO", fmt: str = "json") -> None:
    """(Re)configure structlog for the whole process."""
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if fmt == "console":
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [_event_type, structlog.processors.JSONRenderer(default=str)]
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level_value(level)),
        context_class=dict,
        # No fixed file: writes go to whatever sys.stdout is at call time
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> Any:
    """
    Return a structured logger for the given module name.

        logger = get_logger(__name__)
        logger.info("wallet_analyzed", wallet_id=addr, entry_count=12)
    """
    return structlog.get_logger(name, logger=name)


def bind_wallet(wallet_id: str) -> Any:
    """Logger with wallet_id bound to every call."""
    return structlog.get_logger(ROOT_LOGGER_NAME, logger=ROOT_LOGGER_NAME, wallet_id=wallet_id)
