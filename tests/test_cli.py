"""
Tests for the command line host.
"""

import json
from decimal import Decimal

import pytest

from conftest import GOLDEN_CLOSES, GOLDEN_RSI
from rsicraft.cli import main, replay
from rsicraft.engine import compute
from rsicraft.runner import IndicatorRunner
from rsicraft.utils import config as config_module


@pytest.fixture
def golden_csv(tmp_path, golden_klines):
    path = tmp_path / "golden.csv"
    lines = ["timestamp,close"]
    lines += [f"{k.timestamp.isoformat()},{close}" for k, close in zip(golden_klines, GOLDEN_CLOSES)]
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.mark.parametrize("batch_size", [1, 3, 7, 100])
def test_replay_batch_sizes_match_batch(sample_klines, batch_size):
    runner = IndicatorRunner(settings={"Period": 14})
    points = replay(runner, sample_klines, "TEST", "1h", batch_size=batch_size)
    assert points == compute(sample_klines, 14)[0]


def test_replay_on_trimmed_window(sample_klines):
    runner = IndicatorRunner(settings={"Period": 14})
    points = replay(runner, sample_klines, "TEST", "1h", batch_size=2, window=30)
    assert points == compute(sample_klines, 14)[0]


def test_json_output(golden_csv, capsys):
    code = main(["--input", str(golden_csv), "--format", "json", "--log-level", "ERROR"])

    assert code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["overbought"] == "70"
    assert output["oversold"] == "30"
    assert [Decimal(p["rsi"]) for p in output["points"]] == GOLDEN_RSI


def test_csv_output_with_period(golden_csv, capsys):
    code = main(["--input", str(golden_csv), "--format", "csv", "--period", "5", "--log-level", "ERROR"])

    assert code == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines[0] == "timestamp,rsi"
    assert len(lines) == 1 + len(GOLDEN_CLOSES) - 5


def test_table_output(golden_csv, capsys):
    assert main(["--input", str(golden_csv), "--log-level", "ERROR"]) == 0
    out = capsys.readouterr().out
    assert "Timestamp" in out
    assert "70.4641" in out


def test_describe(capsys):
    assert main(["--describe", "--log-level", "ERROR"]) == 0
    assert json.loads(capsys.readouterr().out)["name"] == "Stateful RSI"


def test_invalid_period_fails(golden_csv):
    assert main(["--input", str(golden_csv), "--period", "0", "--log-level", "CRITICAL"]) == 1


def test_missing_file_fails(tmp_path):
    assert main(["--input", str(tmp_path / "nope.csv"), "--log-level", "CRITICAL"]) == 1


def test_requires_a_source():
    with pytest.raises(SystemExit):
        main(["--log-level", "ERROR"])


def test_bad_indicator_default_is_reported(golden_csv, monkeypatch):
    monkeypatch.setattr(config_module, "_config", None)
    monkeypatch.setenv("RSI_PERIOD", "abc")
    assert main(["--input", str(golden_csv), "--log-level", "CRITICAL"]) == 1
    assert main(["--describe", "--log-level", "CRITICAL"]) == 1
