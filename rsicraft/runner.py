"""
Host-side runner for one indicator instance.

The runner owns the per-chart bookkeeping the indicator relies on: it keys
state slots by (instance, symbol, timeframe), tells the indicator to reset
when a slot is empty, and forwards settings changes to every slot it owns.
"""

import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from rsicraft.drawing import Drawable
from rsicraft.models import KLine, RSIPoint
from rsicraft.plugin import IndicatorContext, StatefulRsiIndicator
from rsicraft.settings import PERIOD, resolve_settings
from rsicraft.state_store import StateKey, StateStore
from rsicraft.utils.logger import get_logger


class IndicatorRunner:
    """
    Drives one indicator instance across any number of charts.

    Example:
        >>> runner = IndicatorRunner(settings={"Period": 14})
        >>> drawables = runner.run("BTCUSDT", "1h", klines)
        >>> points = runner.last_points("BTCUSDT", "1h")
    """

    def __init__(
        self,
        indicator: Optional[StatefulRsiIndicator] = None,
        store: Optional[StateStore] = None,
        instance_id: Optional[str] = None,
        settings: Optional[Mapping[str, Any]] = None,
    ):
        """
        Initialize the runner.

        Args:
            indicator: Indicator plugin (a new StatefulRsiIndicator if None)
            store: State store, possibly shared with other runners
            instance_id: Identifier of this indicator instance (random if None)
            settings: Initial raw settings keyed by parameter name

        Raises:
            ConfigurationError: If ``settings`` are invalid
        """
        self.indicator = indicator or StatefulRsiIndicator()
        self.store = store if store is not None else StateStore()
        self.instance_id = instance_id or uuid.uuid4().hex
        self.logger = get_logger("rsicraft.runner")

        self._settings: Dict[str, Any] = resolve_settings(settings).as_mapping()
        self._last_points: Dict[StateKey, List[RSIPoint]] = {}

    @property
    def settings(self) -> Dict[str, Any]:
        return dict(self._settings)

    def _key(self, symbol: str, timeframe: str) -> StateKey:
        return StateKey(self.instance_id, symbol, timeframe)

    def run(self, symbol: str, timeframe: str, klines: Sequence[KLine]) -> List[Drawable]:
        """
        Run the indicator over the current kline buffer of one chart.

        Args:
            symbol: Chart symbol
            timeframe: Chart timeframe
            klines: Full kline buffer, oldest first

        Returns:
            Drawables for the bars that arrived since the previous run
        """
        _, drawables = self.run_with_points(symbol, timeframe, klines)
        return drawables

    def run_with_points(
        self, symbol: str, timeframe: str, klines: Sequence[KLine]
    ) -> Tuple[List[RSIPoint], List[Drawable]]:
        key = self._key(symbol, timeframe)
        slot = self.store.slot(key)
        context = IndicatorContext(
            klines=klines,
            settings=self._settings,
            state=slot,
            is_reset=not slot,
        )
        points, drawables = self.indicator.run(context)
        self._last_points[key] = points
        return points, drawables

    def last_points(self, symbol: str, timeframe: str) -> List[RSIPoint]:
        """RSI points emitted by the latest run for this chart."""
        return list(self._last_points.get(self._key(symbol, timeframe), []))

    def apply_settings(self, new_settings: Mapping[str, Any]) -> None:
        """
        Replace the instance settings.

        A period change invalidates the state of every chart this instance is
        attached to.

        Raises:
            ConfigurationError: If the merged settings are invalid; the
                current settings and state are left as they were
        """
        merged = dict(self._settings)
        merged.update(new_settings)
        resolved = resolve_settings(merged).as_mapping()

        period_changed = resolved[PERIOD] != self._settings[PERIOD]
        self._settings = resolved
        if not period_changed:
            return

        for key in self.store.keys(self.instance_id):
            self.indicator.on_settings_changed(resolved, self.store.slot(key))
        self.logger.info(f"Period changed to {resolved[PERIOD]}, indicator state invalidated")

    def reset(self, symbol: str, timeframe: str) -> None:
        """Force a reseed on the next run for this chart."""
        self.store.clear(self._key(symbol, timeframe))

    def unload(self) -> None:
        """Destroy all state owned by this instance."""
        removed = self.store.drop_instance(self.instance_id)
        self._last_points.clear()
        self.logger.debug(f"Unloaded instance {self.instance_id} ({removed} slot(s))")
