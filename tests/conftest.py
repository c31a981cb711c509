"""
Pytest configuration and shared fixtures for testing
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Sequence
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from rsicraft.models import KLine

BASE_TIME = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)

# First 20 closes of the classic Wilder RSI worksheet
GOLDEN_CLOSES = [
    "44.34", "44.09", "44.15", "43.61", "44.33", "44.83", "45.10", "45.42", "45.84", "46.08",
    "45.89", "46.03", "45.61", "46.28", "46.28", "46.00", "46.03", "46.41", "46.22", "45.64",
]

# RSI(14) for bars 14..19 at 10 fractional digits, half-up
GOLDEN_RSI = [
    Decimal("70.4641350166"),
    Decimal("65.9462111843"),
    Decimal("66.1962935244"),
    Decimal("69.2742797332"),
    Decimal("66.0365442099"),
    Decimal("57.2414752845"),
]


def make_klines(closes: Sequence, start: datetime = BASE_TIME, step: timedelta = timedelta(hours=1)) -> List[KLine]:
    """Build hourly klines from a sequence of closes."""
    return [
        KLine(timestamp=start + i * step, close=Decimal(str(close)))
        for i, close in enumerate(closes)
    ]


@pytest.fixture
def golden_klines() -> List[KLine]:
    return make_klines(GOLDEN_CLOSES)


@pytest.fixture
def sample_klines() -> List[KLine]:
    """Generate 100 klines with a repeating saw-tooth price pattern."""
    closes = []
    for i in range(100):
        # Create a simple price pattern
        price_change = Decimal(i % 10) * Decimal("0.5") - Decimal(i % 7) * Decimal("0.3")
        closes.append(Decimal("100.0") + price_change)
    return make_klines(closes)


@pytest.fixture
def flat_klines() -> List[KLine]:
    """20 klines with the same close."""
    return make_klines(["100.00"] * 20)


@pytest.fixture
def minimal_klines() -> List[KLine]:
    """Generate minimal kline data (5 candles) for edge case testing."""
    return make_klines([100, 101, 102, 103, 104])
