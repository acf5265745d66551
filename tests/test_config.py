import json

import pandas as pd
import pytest

from runlog.config import WEEKDAYS, PipelineConfig


def test_defaults():
    cfg = PipelineConfig()
    assert cfg.max_distance == 60.0
    assert cfg.weekday_order == WEEKDAYS
    assert cfg.figsize == (10, 7)
    assert cfg.on_invalid == "raise"


def test_dates_are_coerced():
    cfg = PipelineConfig(start_date="2021-01-01", end_date="2021-12-31")
    assert cfg.start_date == pd.Timestamp("2021-01-01")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_distance": 0},
        {"start_date": "2021-02-01", "end_date": "2021-01-01"},
        {"on_invalid": "ignore"},
        {"weekday_order": ["Sunday", "Monday"]},
        {"weekday_order": ["Sunday"] * 7},
        {"calendar_color": "rainbow"},
        {"calendar_ncolors": 1},
    ],
)
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        PipelineConfig(**kwargs)


def test_from_json_and_replace(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"start_date": "2021-01-01", "max_distance": 45, "figsize": [8, 6]}), encoding="utf-8")
    cfg = PipelineConfig.from_json(path)
    assert cfg.max_distance == 45.0
    assert cfg.figsize == (8, 6)

    again = cfg.replace(max_distance=None, results_dir="out")
    assert again.max_distance == 45.0
    assert str(again.results_dir) == "out"
    assert again.start_date == pd.Timestamp("2021-01-01")


def test_from_json_rejects_unknown_keys(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps({"max_distanse": 45}), encoding="utf-8")
    with pytest.raises(ValueError, match="max_distanse"):
        PipelineConfig.from_json(path)


@pytest.mark.parametrize(
    "raw",
    [{"figsize": 10}, {"figsize": [1, 2, 3]}, {"max_distance": "far"}, {"start_date": "someday"},
     {"calendar_ncolors": "many"}, {"input_path": 5}],
)
def test_from_json_wrong_types_are_value_errors(tmp_path, raw):
    path = tmp_path / "cfg.json"
    path.write_text(json.dumps(raw), encoding="utf-8")
    with pytest.raises(ValueError):
        PipelineConfig.from_json(path)


def test_tz_aware_bounds_become_naive():
    cfg = PipelineConfig(start_date="2021-01-01T09:00:00+09:00")
    assert cfg.start_date == pd.Timestamp("2021-01-01 00:00:00")
    assert cfg.start_date.tzinfo is None
