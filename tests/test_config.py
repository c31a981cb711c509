"""
Tests for environment-driven configuration and logging setup.
"""

import logging
import os
import subprocess
import sys
from pathlib import Path

import pytest

from rsicraft.utils import config as config_module
from rsicraft.utils.config import Config, IndicatorDefaults
from rsicraft.utils.exceptions import ConfigurationError
from rsicraft.utils.logger import get_logger, setup_logger


@pytest.fixture
def fresh_config(monkeypatch):
    monkeypatch.setattr(config_module, "_config", None)
    yield
    config_module._config = None


def test_indicator_defaults(monkeypatch):
    for name in ("RSI_PERIOD", "RSI_OVERBOUGHT", "RSI_OVERSOLD"):
        monkeypatch.delenv(name, raising=False)
    assert IndicatorDefaults.from_env() == IndicatorDefaults(14, 70, 30)


def test_indicator_defaults_from_env(monkeypatch):
    monkeypatch.setenv("RSI_PERIOD", "21")
    monkeypatch.setenv("RSI_OVERBOUGHT", "80")
    monkeypatch.setenv("RSI_OVERSOLD", "")
    assert IndicatorDefaults.from_env() == IndicatorDefaults(21, 80, 30)


def test_malformed_env_value(monkeypatch):
    monkeypatch.setenv("RSI_PERIOD", "fourteen")
    with pytest.raises(ConfigurationError):
        IndicatorDefaults.from_env()


def test_binance_config_from_env(monkeypatch):
    monkeypatch.setenv("BINANCE_API_KEY", "key")
    monkeypatch.setenv("BINANCE_TESTNET", "TRUE")
    config = Config.load()
    assert config.binance.api_key == "key"
    assert config.binance.testnet is True


def test_get_config_is_cached(fresh_config, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    first = config_module.get_config()
    assert first.log_level == "DEBUG"
    assert config_module.get_config() is first


def test_setup_logger_with_file(tmp_path):
    log_file = tmp_path / "logs" / "rsicraft.log"
    logger = setup_logger("rsicraft.test", log_level="DEBUG", log_file=str(log_file))
    try:
        logger.debug("hello")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text()
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()


def test_get_logger_returns_child_without_handlers():
    logger = get_logger("rsicraft.something")
    assert logger.name == "rsicraft.something"
    assert logger.handlers == []
    assert logging.getLogger("rsicraft").handlers


def test_bad_indicator_default_does_not_block_logging(fresh_config, monkeypatch):
    monkeypatch.setenv("RSI_PERIOD", "abc")
    logger = setup_logger("rsicraft.lazy", log_level="INFO")
    try:
        assert logger.level == logging.INFO
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
    with pytest.raises(ConfigurationError):
        config_module.get_config().indicator


def test_engine_imports_with_bad_indicator_default():
    env = dict(os.environ, RSI_PERIOD="abc")
    env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(Path(__file__).parent.parent), env.get("PYTHONPATH")) if p
    )
    result = subprocess.run(
        [sys.executable, "-c", "from rsicraft.engine import compute; print(compute.__name__)"],
        env=env,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr
    assert result.stdout.strip() == "compute"
