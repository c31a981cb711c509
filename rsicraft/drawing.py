"""
Drawable geometry produced by the RSI indicator.

The renderer consumes these objects as-is; nothing here feeds back into the
engine.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence, Union

from rsicraft.models import KLine, RSIPoint
from rsicraft.settings import Color, Settings

RSI_LINE_WIDTH = 2.0
THRESHOLD_LINE_WIDTH = 1.0


@dataclass(frozen=True)
class DataPoint:
    """A (time, value) coordinate in the indicator pane."""
    timestamp: datetime
    value: Decimal


@dataclass(frozen=True)
class DrawablePolyline:
    points: List[DataPoint]
    color: Color
    width: float


@dataclass(frozen=True)
class DrawableBox:
    """Rectangle between two opposite corners."""
    corner1: DataPoint
    corner2: DataPoint
    fill_color: Color
    border_color: Optional[Color] = None
    border_width: float = 0.0


@dataclass(frozen=True)
class HorizontalLine:
    """Line across the whole pane at a fixed value."""
    level: Decimal
    color: Color
    width: float
    dashed: bool = True


Drawable = Union[DrawablePolyline, DrawableBox, HorizontalLine]


def build_drawables(
    points: Sequence[RSIPoint],
    klines: Sequence[KLine],
    settings: Settings,
) -> List[Drawable]:
    """
    Convert RSI points and threshold levels into drawables.

    Order: RSI polyline (if any points), threshold band box (if any klines),
    overbought line, oversold line.
    """
    drawables: List[Drawable] = []

    if points:
        drawables.append(DrawablePolyline(
            points=[DataPoint(point.timestamp, point.value) for point in points],
            color=settings.rsi_color,
            width=RSI_LINE_WIDTH,
        ))

    if klines:
        drawables.append(DrawableBox(
            corner1=DataPoint(klines[0].timestamp, settings.overbought),
            corner2=DataPoint(klines[-1].timestamp, settings.oversold),
            fill_color=settings.band_color,
        ))

    line_color = settings.band_color.darker()
    drawables.append(HorizontalLine(settings.overbought, line_color, THRESHOLD_LINE_WIDTH))
    drawables.append(HorizontalLine(settings.oversold, line_color, THRESHOLD_LINE_WIDTH))

    return drawables
