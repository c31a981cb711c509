"""
rsicraft - A stateful Relative Strength Index indicator for charting hosts.

The engine computes Wilder-smoothed RSI incrementally over a growing kline
buffer, carrying its smoothing state between calls so that each update only
processes new bars.
"""

from rsicraft.models import KLine, RSIPoint, EngineState
from rsicraft.engine import compute
from rsicraft.api import calculate_rsi
from rsicraft.plugin import IndicatorContext, StatefulRsiIndicator
from rsicraft.runner import IndicatorRunner
from rsicraft.state_store import StateKey, StateStore

__version__ = "0.1.0"
__all__ = [
    "compute",
    "calculate_rsi",
    "KLine",
    "RSIPoint",
    "EngineState",
    "IndicatorContext",
    "StatefulRsiIndicator",
    "IndicatorRunner",
    "StateKey",
    "StateStore",
]
