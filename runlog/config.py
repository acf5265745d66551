# runlog/config.py
# ============================================================
# Pipeline settings
#  - every threshold/date that used to be an inline literal lives here
#  - JSON file -> PipelineConfig, CLI flags override via replace()
# ============================================================

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

WEEKDAYS = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
ON_INVALID = {"raise", "drop"}
CALENDAR_SCHEMES = {"r2g", "g2r", "r2b", "w2b"}


def _naive(value) -> pd.Timestamp | None:
    # 活動日時は tz なし（UTC換算）で持つので、境界もそれに合わせる
    if value is None:
        return None
    ts = pd.Timestamp(value)
    return ts.tz_convert(None) if ts.tzinfo is not None else ts


@dataclass
class PipelineConfig:
    input_path: Path = Path("data/raw/activities.csv")
    results_dir: Path = Path("results")
    start_date: pd.Timestamp | None = None
    end_date: pd.Timestamp | None = None
    max_distance: float = 60.0  # km
    activity_types: list[str] | None = None
    weekday_order: list[str] = field(default_factory=lambda: list(WEEKDAYS))
    on_invalid: str = "raise"
    figsize: tuple[float, float] = (10, 7)
    dpi: int = 100
    calendar_color: str = "r2g"
    calendar_ncolors: int = 99

    def __post_init__(self) -> None:
        try:
            self.input_path = Path(self.input_path)
            self.results_dir = Path(self.results_dir)
            self.start_date = _naive(self.start_date)
            self.end_date = _naive(self.end_date)
            self.max_distance = float(self.max_distance)
            self.figsize = tuple(float(x) for x in self.figsize)
            self.dpi = int(self.dpi)
            self.calendar_ncolors = int(self.calendar_ncolors)
            self.weekday_order = list(self.weekday_order)
            if self.activity_types is not None:
                self.activity_types = [str(t) for t in self.activity_types]
        except (TypeError, ValueError) as e:
            raise ValueError(f"invalid config value: {e}") from e
        if len(self.figsize) != 2:
            raise ValueError(f"figsize must be (width, height) (got {self.figsize})")

        if self.max_distance <= 0:
            raise ValueError(f"max_distance must be > 0 (got {self.max_distance})")
        if self.start_date is not None and self.end_date is not None and self.start_date > self.end_date:
            raise ValueError(f"start_date {self.start_date.date()} is after end_date {self.end_date.date()}")
        if self.on_invalid not in ON_INVALID:
            raise ValueError(f"on_invalid must be one of {sorted(ON_INVALID)} (got {self.on_invalid!r})")
        if sorted(self.weekday_order) != sorted(WEEKDAYS):
            raise ValueError(f"weekday_order must list each of {WEEKDAYS} exactly once")
        if self.calendar_color not in CALENDAR_SCHEMES:
            raise ValueError(f"calendar_color must be one of {sorted(CALENDAR_SCHEMES)}")
        if self.calendar_ncolors < 2:
            raise ValueError("calendar_ncolors must be >= 2")

    @classmethod
    def from_json(cls, path: Path) -> "PipelineConfig":
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: config must be a JSON object")
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(f"{path}: unknown config keys: {', '.join(unknown)}")
        return cls(**raw)

    def replace(self, **overrides) -> "PipelineConfig":
        # None = "flag not given", keep current value
        changes = {k: v for k, v in overrides.items() if v is not None}
        return dataclasses.replace(self, **changes)
