"""
Public batch API for rsicraft.
"""

from typing import Any, Dict, List, Sequence

from rsicraft.engine import compute
from rsicraft.models import KLine


def calculate_rsi(klines: Sequence[KLine], period: int = 14) -> List[Dict[str, Any]]:
    """
    Calculate RSI values for a whole kline series in one pass.

    Args:
        klines: List of KLine objects ordered by timestamp
        period: RSI period (default: 14)

    Returns:
        One dictionary per kline with keys 'timestamp' and 'rsi'.
        'rsi' is None for bars before enough data is available.

    Raises:
        ConfigurationError: If ``period`` is not an integer >= 1
    """
    points, _ = compute(klines, period, reset_requested=True)
    values = {point.timestamp: point.value for point in points}
    return [
        {"timestamp": kline.timestamp, "rsi": values.get(kline.timestamp)}
        for kline in klines
    ]
