"""
Test that walletpnl_logging imports cleanly, renders JSON with event_type, and
follows the level/format chosen from Settings at process start.
"""

from __future__ import annotations

import json
import os

import pytest

from backend_walletpnl.walletpnl_logging import bind_wallet, configure_structlog, get_logger

ENV_KEYS = ("JWT_SECRET", "LOG_LEVEL", "LOG_FORMAT", "WALLETPNL_DB_URL", "DATABASE_URL", "PROVIDER_MODE")


@pytest.fixture(autouse=True)
def default_logging():
    configure_structlog()
    yield
    configure_structlog()


def _json_lines(out: str) -> list[dict]:
    return [json.loads(line) for line in out.splitlines() if line.strip()]


def test_logging_import(capsys):
    """Import get_logger from walletpnl_logging and use the logger."""
    logger = get_logger("test")
    assert hasattr(logger, "info")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    logger.info("test_message", key="value")
    bind_wallet("0xabc").info("wallet_message", entry_count=1)

    first, second = _json_lines(capsys.readouterr().out)
    assert first["event_type"] == "test_message"
    assert first["logger"] == "test"
    assert first["level"] == "info"
    assert "timestamp" in first
    assert second["wallet_id"] == "0xabc"


def test_module_logger_follows_later_configuration(capsys):
    """A logger created at import time picks up the level configured afterwards."""
    from backend_walletpnl.database import store as store_module

    configure_structlog("WARNING")
    store_module.logger.info("hidden_event")
    store_module.logger.warning("shown_event")
    lines = _json_lines(capsys.readouterr().out)
    assert [line["event_type"] for line in lines] == ["shown_event"]
    assert lines[0]["logger"] == "backend_walletpnl.database.store"


def test_console_format(capsys):
    configure_structlog("INFO", "console")
    get_logger("test").info("console_event")
    assert "console_event" in capsys.readouterr().out


def test_app_factory_applies_log_level_from_dotenv(tmp_path, monkeypatch, capsys):
    from backend_walletpnl.api_server.app import app_factory

    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    env_file = tmp_path / ".env"
    env_file.write_text(
        "JWT_SECRET=dotenv-secret-key-with-enough-length-for-hs256\n"
        "LOG_LEVEL=ERROR\n"
        f"WALLETPNL_DB_URL=sqlite:///{tmp_path / 'factory.db'}\n"
    )
    monkeypatch.setattr("backend_walletpnl.config.env._ENV_PATH", env_file)
    try:
        app = app_factory()
        assert app.state.settings.log_level == "ERROR"
        capsys.readouterr()
        get_logger("test").warning("dropped_event")
        get_logger("test").error("kept_event")
        lines = _json_lines(capsys.readouterr().out)
        assert [line["event_type"] for line in lines] == ["kept_event"]
    finally:
        # load_dotenv writes straight into os.environ
        for key in ENV_KEYS:
            os.environ.pop(key, None)
