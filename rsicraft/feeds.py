"""
Kline sources for the command line host.

Klines come either from a local CSV/JSON file or from the Binance public
klines endpoint. Closes are kept as exact decimals.
"""

import csv
import json
from datetime import datetime, timezone
from decimal import InvalidOperation
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from binance.client import Client
from binance.exceptions import BinanceAPIException

from rsicraft.models import KLine, to_decimal, to_utc
from rsicraft.utils.config import BinanceConfig, get_config
from rsicraft.utils.exceptions import DataFetchError, DataLoadError
from rsicraft.utils.logger import get_logger

BINANCE_MAX_LIMIT = 1000

INTERVAL_MAP = {
    "1m": Client.KLINE_INTERVAL_1MINUTE,
    "5m": Client.KLINE_INTERVAL_5MINUTE,
    "15m": Client.KLINE_INTERVAL_15MINUTE,
    "30m": Client.KLINE_INTERVAL_30MINUTE,
    "1h": Client.KLINE_INTERVAL_1HOUR,
    "4h": Client.KLINE_INTERVAL_4HOUR,
    "1d": Client.KLINE_INTERVAL_1DAY,
    "1w": Client.KLINE_INTERVAL_1WEEK,
    "1M": Client.KLINE_INTERVAL_1MONTH,
}

logger = get_logger("rsicraft.feeds")


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO string, ``YYYY-MM-DD[ HH:MM:SS]`` or epoch milliseconds into UTC."""
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    text = str(value).strip()
    if text.isdigit():
        return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
    for fmt in ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d"):
        try:
            return to_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue
    return to_utc(datetime.fromisoformat(text))


def _kline_from_record(record: Dict[str, Any]) -> KLine:
    if not isinstance(record, dict):
        raise TypeError(f"expected an object with timestamp and close, got {record!r}")
    optional = {}
    for name in ("open", "high", "low", "volume"):
        value = record.get(name)
        if value not in (None, ""):
            optional[name] = to_decimal(value)
    return KLine(
        timestamp=parse_timestamp(record["timestamp"]),
        close=to_decimal(record["close"]),
        **optional,
    )


def load_klines(path: Union[str, Path]) -> List[KLine]:
    """
    Load klines from a CSV or JSON file.

    CSV files need a header with at least ``timestamp`` and ``close``; JSON
    files hold a list of objects with the same keys. Other OHLCV columns are
    optional.

    Raises:
        DataLoadError: If the file is missing, malformed, or not strictly
            increasing in time
    """
    path = Path(path)
    if not path.is_file():
        raise DataLoadError(f"Kline file not found: {path}")

    try:
        if path.suffix.lower() == ".json":
            with path.open() as f:
                records = json.load(f)
            if not isinstance(records, list):
                raise DataLoadError(f"{path}: expected a JSON list of klines")
        else:
            with path.open(newline="") as f:
                records = list(csv.DictReader(f))
        klines = [_kline_from_record(record) for record in records]
    except DataLoadError:
        raise
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise DataLoadError(f"{path}: malformed kline record: {e}") from e

    for previous, current in zip(klines, klines[1:]):
        if current.timestamp <= previous.timestamp:
            raise DataLoadError(
                f"{path}: timestamps must be strictly increasing "
                f"({previous.timestamp.isoformat()} then {current.timestamp.isoformat()})"
            )

    logger.info(f"Loaded {len(klines)} klines from {path}")
    return klines


class BinanceKlineFeed:
    """
    Fetch klines from the Binance public API.

    No API key is required for klines; a key only raises rate limits.
    """

    def __init__(self, binance_config: Optional[BinanceConfig] = None, client: Optional[Client] = None):
        """
        Initialize the feed.

        Args:
            binance_config: Optional Binance configuration
            client: Pre-built client (skips authentication)
        """
        self.binance_config = binance_config or get_config().binance
        self.client = client
        self.logger = get_logger("rsicraft.feeds.binance")

    def authenticate(self) -> Client:
        """
        Create the Binance client and test the connection.

        Raises:
            DataFetchError: If the client cannot connect
        """
        if self.client is not None:
            return self.client
        try:
            if self.binance_config.api_key and self.binance_config.api_secret:
                client = Client(
                    api_key=self.binance_config.api_key,
                    api_secret=self.binance_config.api_secret,
                    testnet=self.binance_config.testnet,
                )
                self.logger.info("Authenticated with Binance API (with API key)")
            else:
                client = Client(testnet=self.binance_config.testnet)
                self.logger.info("Using Binance API (public access, no API key)")
            client.ping()
        except Exception as e:
            self.logger.error(f"Binance connection failed: {e}")
            raise DataFetchError(f"Failed to connect to Binance: {e}") from e
        self.client = client
        return client

    def fetch_klines(self, symbol: str, timeframe: str, limit: int = 500) -> List[KLine]:
        """
        Fetch the most recent ``limit`` klines for ``symbol``.

        Args:
            symbol: Trading pair (e.g., 'BTCUSDT')
            timeframe: One of INTERVAL_MAP's keys
            limit: Number of candles (capped at 1000)

        Raises:
            DataFetchError: For unsupported timeframes or API failures
        """
        if timeframe not in INTERVAL_MAP:
            raise DataFetchError(
                f"Unsupported timeframe: {timeframe}. Supported: {', '.join(INTERVAL_MAP)}"
            )
        if limit > BINANCE_MAX_LIMIT:
            self.logger.warning(f"Binance limit is {BINANCE_MAX_LIMIT} candles per request. Using {BINANCE_MAX_LIMIT}.")
            limit = BINANCE_MAX_LIMIT

        client = self.authenticate()
        symbol_upper = symbol.upper()
        try:
            raw = client.get_klines(symbol=symbol_upper, interval=INTERVAL_MAP[timeframe], limit=limit)
        except BinanceAPIException as e:
            raise DataFetchError(f"Binance API error: {e}") from e
        except Exception as e:
            raise DataFetchError(f"Binance fetch failed: {e}") from e

        try:
            klines = [
                KLine(
                    timestamp=parse_timestamp(row[0]),
                    open=to_decimal(row[1]),
                    high=to_decimal(row[2]),
                    low=to_decimal(row[3]),
                    close=to_decimal(row[4]),
                    volume=to_decimal(row[5]),
                )
                for row in raw
            ]
        except (IndexError, TypeError, ValueError, InvalidOperation) as e:
            raise DataFetchError(f"Malformed kline from Binance: {e}") from e

        self.logger.info(f"Fetched {len(klines)} bars for {symbol_upper} ({timeframe}) from Binance")
        return klines
