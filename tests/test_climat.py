# tests/test_climat.py
from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

import climat


@pytest.fixture
def fake_series(monkeypatch: pytest.MonkeyPatch, calendar_labels):
    labels = calendar_labels("2001-01-01", "2010-12-31")
    values = np.random.default_rng(3).normal(8.0, 6.0, len(labels)).tolist()
    seen: dict = {}

    def fake_load(source, location, cache_dir=None, offline=False, max_retries=6):
        seen.update(source=source, location=location, cache_dir=cache_dir, offline=offline)
        return labels, values

    monkeypatch.setattr(climat, "load_daily_series", fake_load)
    return seen


def _argv(tmp_path: Path, *extra: str) -> list[str]:
    return [
        "--lat", "44.84",
        "--lon", "-0.58",
        "--name", "Bordeaux",
        "--epoch-year", "2001",
        "--end-date", "2010-12-31",
        "--outdir", str(tmp_path / "out"),
        "--cache-dir", str(tmp_path / "cache"),
        *extra,
    ]


def test_main_writes_all_outputs(tmp_path: Path, fake_series) -> None:
    climat.main(_argv(tmp_path, "--year", "2005"))

    out = tmp_path / "out"
    for name in ("per_day.csv", "per_year.csv", "summary.json", "envelope.png",
                 "extremity_histogram.png", "anomaly.png"):
        assert (out / name).exists(), name

    per_day = pd.read_csv(out / "per_day.csv")
    assert len(per_day) == 365
    assert per_day["year_2005"].notna().all()
    assert (per_day["min"] <= per_day["max"]).all()

    per_year = pd.read_csv(out / "per_year.csv")
    assert per_year["year"].tolist() == list(range(2001, 2011))
    assert (per_year["low"] <= 0).all()
    assert (per_year["high"] >= 0).all()

    summary = json.loads((out / "summary.json").read_text())
    assert summary["selected_year"] == 2005
    assert summary["selected_year_days"] == 365
    assert summary["location"]["name"] == "Bordeaux"
    assert summary["window"] == {"start": "2001-01-01", "end": "2010-12-31"}

    source = fake_series["source"]
    assert source.variable == "temperature_2m_min"
    assert source.start_date == "2001-01-01"
    assert fake_series["offline"] is False


def test_main_defaults_to_last_year(tmp_path: Path, fake_series) -> None:
    climat.main(_argv(tmp_path))

    summary = json.loads((tmp_path / "out" / "summary.json").read_text())
    assert summary["selected_year"] == 2010


def test_main_year_without_data(tmp_path: Path, fake_series, capsys: pytest.CaptureFixture[str]) -> None:
    climat.main(_argv(tmp_path, "--year", "1980"))

    out = tmp_path / "out"
    assert "no data for year 1980" in capsys.readouterr().out
    assert not (out / "anomaly.png").exists()
    assert (out / "envelope.png").exists()
    summary = json.loads((out / "summary.json").read_text())
    assert summary["selected_year_days"] == 0


def test_offline_requires_cache_dir(tmp_path: Path, fake_series) -> None:
    with pytest.raises(FileNotFoundError, match="cache dir not found"):
        climat.main(_argv(tmp_path, "--offline"))


def test_parse_args_rejects_unknown_variable() -> None:
    with pytest.raises(SystemExit):
        climat.parse_args(["--lat", "1", "--lon", "2", "--variable", "precipitation_sum"])
