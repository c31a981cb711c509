"""
Tests for the drawable output of the RSI indicator.
"""

from decimal import Decimal

from rsicraft.drawing import (
    DataPoint,
    DrawableBox,
    DrawablePolyline,
    HorizontalLine,
    build_drawables,
)
from rsicraft.engine import compute
from rsicraft.settings import Color, resolve_settings


def test_full_drawable_set(golden_klines):
    settings = resolve_settings({"Period": 14})
    points, _ = compute(golden_klines, 14)

    polyline, box, upper, lower = build_drawables(points, golden_klines, settings)

    assert isinstance(polyline, DrawablePolyline)
    assert polyline.points == [DataPoint(p.timestamp, p.value) for p in points]
    assert polyline.color == settings.rsi_color
    assert polyline.width == 2.0

    assert isinstance(box, DrawableBox)
    assert box.corner1 == DataPoint(golden_klines[0].timestamp, Decimal(70))
    assert box.corner2 == DataPoint(golden_klines[-1].timestamp, Decimal(30))
    assert box.fill_color == settings.band_color
    assert box.border_color is None
    assert box.border_width == 0.0

    darker = Color(128, 128, 128, 50).darker()
    assert upper == HorizontalLine(Decimal(70), darker, 1.0, dashed=True)
    assert lower == HorizontalLine(Decimal(30), darker, 1.0, dashed=True)


def test_no_points_skips_polyline(golden_klines):
    settings = resolve_settings()
    drawables = build_drawables([], golden_klines, settings)
    assert [type(d) for d in drawables] == [DrawableBox, HorizontalLine, HorizontalLine]


def test_no_klines_only_threshold_lines():
    settings = resolve_settings({"Overbought": 80, "Oversold": 20})
    drawables = build_drawables([], [], settings)
    assert [d.level for d in drawables] == [Decimal(80), Decimal(20)]
