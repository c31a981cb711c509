"""
Tests for the batch RSI API.
"""

import pytest

from conftest import GOLDEN_RSI
from rsicraft import calculate_rsi
from rsicraft.utils.exceptions import ConfigurationError


def test_rows_align_with_klines(golden_klines):
    rows = calculate_rsi(golden_klines, period=14)

    assert len(rows) == len(golden_klines)
    assert [row["timestamp"] for row in rows] == [k.timestamp for k in golden_klines]
    assert all(row["rsi"] is None for row in rows[:14])
    assert [row["rsi"] for row in rows[14:]] == GOLDEN_RSI


def test_not_enough_data(minimal_klines):
    rows = calculate_rsi(minimal_klines)
    assert all(row["rsi"] is None for row in rows)


def test_invalid_period(golden_klines):
    with pytest.raises(ConfigurationError):
        calculate_rsi(golden_klines, period=0)
