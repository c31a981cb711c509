"""
Stateful RSI indicator plugin.

Drawn in a separate pane, it shows momentum using Wilder's smoothing. The
smoothing state lives in the per-chart slot supplied by the host, so repeated
calls only process bars that arrived since the previous call.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, MutableMapping, Sequence, Tuple

from rsicraft import engine
from rsicraft.drawing import Drawable, build_drawables
from rsicraft.models import KLine, RSIPoint
from rsicraft.settings import Color, Parameter, default_parameters, resolve_settings
from rsicraft.state_store import load_state, save_state
from rsicraft.utils.logger import get_logger


class IndicatorType(Enum):
    """Where the host draws an indicator"""
    OVERLAY = "overlay"
    PANE = "pane"


@dataclass
class IndicatorContext:
    """
    Everything the host passes to one ``calculate`` call.

    Attributes:
        klines: Kline buffer for the chart, oldest first
        settings: Raw settings keyed by parameter name
        state: Mutable state slot owned by this (instance, symbol, timeframe)
        is_reset: True when the host wants the indicator to start over
    """

    klines: Sequence[KLine]
    settings: Mapping[str, Any]
    state: MutableMapping = field(default_factory=dict)
    is_reset: bool = False


class StatefulRsiIndicator:
    """Relative Strength Index with incremental Wilder smoothing."""

    name = "Stateful RSI"
    indicator_type = IndicatorType.PANE

    def __init__(self):
        self.logger = get_logger("rsicraft.plugin")

    def get_parameters(self) -> List[Parameter]:
        return default_parameters()

    def on_settings_changed(self, new_settings: Mapping[str, Any], state: MutableMapping) -> None:
        """
        Invalidate the stored state.

        An empty slot makes the runner pass ``is_reset=True`` on the next run.
        """
        state.clear()

    def calculate(self, context: IndicatorContext) -> List[Drawable]:
        """Compute new RSI points for the context's klines and return drawables."""
        _, drawables = self.run(context)
        return drawables

    def run(self, context: IndicatorContext) -> Tuple[List[RSIPoint], List[Drawable]]:
        """
        Compute new RSI points and the drawables built from them.

        Raises:
            ConfigurationError: If the context settings are invalid
        """
        settings = resolve_settings(context.settings)

        if context.is_reset:
            context.state.clear()
        prior_state = None if context.is_reset else load_state(context.state)
        points, new_state = engine.compute(
            context.klines,
            settings.period,
            reset_requested=context.is_reset,
            prior_state=prior_state,
        )
        if new_state is not prior_state:
            save_state(context.state, new_state)

        if points:
            self.logger.debug(f"{self.name}: {len(points)} new point(s), last={points[-1].value}")
        return points, build_drawables(points, context.klines, settings)

    def describe(self) -> Dict[str, Any]:
        """Plugin metadata for the host's indicator list."""
        return {
            "name": self.name,
            "type": self.indicator_type.value,
            "parameters": [
                {
                    "name": param.name,
                    "type": param.type.value,
                    "default": param.default.to_hex() if isinstance(param.default, Color) else param.default,
                }
                for param in self.get_parameters()
            ],
        }
