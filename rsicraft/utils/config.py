"""
Configuration management module.

Handles loading configuration from environment variables and an optional
.env file. Indicator defaults, provider credentials and logging options are
all read here.
"""

import os
from typing import Optional
from dataclasses import dataclass, field

from dotenv import load_dotenv

from .exceptions import ConfigurationError

load_dotenv()  # Load environment variables from .env file


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


@dataclass
class IndicatorDefaults:
    """Default parameter values offered by the RSI indicator."""

    period: int = 14
    overbought: int = 70
    oversold: int = 30

    @classmethod
    def from_env(cls) -> "IndicatorDefaults":
        """Load indicator defaults from environment variables."""
        return cls(
            period=_env_int("RSI_PERIOD", 14),
            overbought=_env_int("RSI_OVERBOUGHT", 70),
            oversold=_env_int("RSI_OVERSOLD", 30),
        )


@dataclass
class BinanceConfig:
    """Binance API configuration (public klines need no key)."""

    api_key: Optional[str] = field(default=None, init=False)
    api_secret: Optional[str] = field(default=None, init=False)
    testnet: bool = False
    timeout: int = 30

    def __post_init__(self):
        if self.api_key is None:
            self.api_key = os.getenv("BINANCE_API_KEY")
        if self.api_secret is None:
            self.api_secret = os.getenv("BINANCE_API_SECRET")
        self.testnet = os.getenv("BINANCE_TESTNET", "false").lower() == "true"


@dataclass
class Config:
    """
    Main configuration class.

    Loads all configuration from environment variables with sensible defaults.
    """

    binance: BinanceConfig = field(default_factory=BinanceConfig)

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: os.getenv("LOG_FILE"))
    _indicator: Optional[IndicatorDefaults] = field(default=None, init=False, repr=False)

    @property
    def indicator(self) -> IndicatorDefaults:
        """Indicator defaults, read from the environment on first access."""
        if self._indicator is None:
            self._indicator = IndicatorDefaults.from_env()
        return self._indicator

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from environment."""
        return cls()


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config
