# runlog/etl.py
# ============================================================
# Activity CSV -> cleaned table -> aggregates
#  - DataLoader    : CSV読み込み + ヘッダ名の正規化
#  - Cleaner       : 列の絞り込み・型変換（"12,345" -> 12345.0）
#  - ActivityFilter: 期間・外れ値（距離上限）・種目で絞る
#  - add_calendar_fields / summarize / fill_grid
# ============================================================

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from runlog.config import MONTHS, ON_INVALID, WEEKDAYS, PipelineConfig

log = logging.getLogger(__name__)

COLUMNS = ["activity_type", "date", "distance", "calories", "time", "avg_pace", "elev_gain"]
REQUIRED = ["date", "distance"]
MISSING_TOKENS = {"", "--"}  # Garmin exports write "--" for "no value"


class ActivityDataError(ValueError):
    """Input rows or columns that cannot be turned into activity records."""


def normalize_column(name: str) -> str:
    # "Activity.Type" / "Activity Type" -> "activity_type"
    return re.sub(r"[.\s]+", "_", name.strip()).strip("_").lower()


def _row_labels(mask: pd.Series, limit: int = 5) -> str:
    labels = [str(i) for i in mask[mask].index[:limit]]
    more = int(mask.sum()) - len(labels)
    return ", ".join(labels) + (f" (+{more} more)" if more > 0 else "")


# ---------- 数値変換（3桁区切り対応） ----------
def parse_thousands(value) -> float | None:
    """
    "12,345" -> 12345.0 / "0" -> 0.0
    空文字・"--"・NaN は None（欠損）として返す。
    それ以外の数値にならない文字列は ActivityDataError。
    """
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if text in MISSING_TOKENS:
        return None
    try:
        return float(text.replace(",", ""))
    except ValueError:
        raise ActivityDataError(f"not a number: {value!r}") from None


def _coerce_thousands(s: pd.Series) -> tuple[pd.Series, pd.Series]:
    # returns (values as Float64, mask of unparseable non-missing cells)
    text = s.astype("string").str.strip()
    missing = text.isna() | text.isin(MISSING_TOKENS)
    cleaned = text.str.replace(",", "", regex=False).where(~missing, "nan").astype(object)
    values = pd.to_numeric(cleaned, errors="coerce").astype("Float64")
    bad = values.isna() & ~missing
    return values, bad.astype(bool)


def parse_thousands_series(s: pd.Series) -> pd.Series:
    values, bad = _coerce_thousands(s)
    if bad.any():
        raise ActivityDataError(f"column {s.name!r}: not a number at rows {_row_labels(bad)}")
    return values


@dataclass
class DataLoader:
    def load(self, path: Path) -> pd.DataFrame:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"input CSV not found: {path}")
        # 全部文字列で読む。型変換は Cleaner の責任
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        df.columns = [normalize_column(c) for c in df.columns]
        log.info("loaded %d rows from %s", len(df), path)
        return df


@dataclass
class Cleaner:
    on_invalid: str = "raise"  # "raise" | "drop"

    def __post_init__(self) -> None:
        if self.on_invalid not in ON_INVALID:
            raise ValueError(f"on_invalid must be one of {sorted(ON_INVALID)}")

    def clean(self, df: pd.DataFrame) -> pd.DataFrame:
        absent = [c for c in COLUMNS if c not in df.columns]
        if absent:
            raise ActivityDataError(f"missing columns: {', '.join(absent)}")
        out = df.loc[:, COLUMNS].copy()

        # "...Z" / "+09:00" 付きは UTC に揃えてから tz を外す（オフセット無しはそのまま）
        out["date"] = pd.to_datetime(out["date"], errors="coerce", format="ISO8601", utc=True).dt.tz_convert(None)
        out = self._require(out, "date", out["date"].isna())

        distance, _ = _coerce_thousands(out["distance"])
        out["distance"] = distance
        out = self._require(out, "distance", out["distance"].isna())
        out["distance"] = out["distance"].astype(float)

        for col in ("calories", "elev_gain"):
            values, bad = _coerce_thousands(out[col])
            if bad.any():
                if self.on_invalid == "raise":
                    raise ActivityDataError(f"column {col!r}: not a number at rows {_row_labels(bad)}")
                log.warning("%s: %d unparseable value(s) set to missing", col, int(bad.sum()))
            out[col] = values

        # 未加工のまま残す
        out["time"] = out["time"].astype("string")
        out["avg_pace"] = out["avg_pace"].astype("string")
        out["activity_type"] = out["activity_type"].str.strip().astype("category")
        return out

    def _require(self, df: pd.DataFrame, col: str, bad: pd.Series) -> pd.DataFrame:
        if not bad.any():
            return df
        if self.on_invalid == "raise":
            raise ActivityDataError(f"column {col!r}: missing or unparseable at rows {_row_labels(bad)}")
        log.warning("%s: dropped %d row(s) with missing or unparseable values", col, int(bad.sum()))
        return df.loc[~bad].copy()


@dataclass
class ActivityFilter:
    start_date: pd.Timestamp | None = None
    end_date: pd.Timestamp | None = None  # その日の終わりまで含む
    max_distance: float = 60.0
    activity_types: list[str] | None = None

    @classmethod
    def from_config(cls, cfg: PipelineConfig) -> "ActivityFilter":
        return cls(
            start_date=cfg.start_date,
            end_date=cfg.end_date,
            max_distance=cfg.max_distance,
            activity_types=cfg.activity_types,
        )

    def apply(self, df: pd.DataFrame) -> pd.DataFrame:
        keep = pd.Series(True, index=df.index)
        if self.start_date is not None:
            keep &= df["date"] >= pd.Timestamp(self.start_date)
        if self.end_date is not None:
            keep &= df["date"].dt.normalize() <= pd.Timestamp(self.end_date).normalize()
        outlier = df["distance"] > self.max_distance
        keep &= ~outlier
        if self.activity_types:
            keep &= df["activity_type"].astype(str).isin(self.activity_types)

        log.info(
            "filter: kept %d of %d rows (%d over %.1f km)",
            int(keep.sum()), len(df), int(outlier.sum()), self.max_distance,
        )
        return df.loc[keep].copy()


def add_calendar_fields(df: pd.DataFrame, weekday_order: list[str] | None = None) -> pd.DataFrame:
    order = list(weekday_order or WEEKDAYS)
    out = df.copy()
    ts = out["date"]
    out["year"] = ts.dt.year.astype(int)
    out["month"] = pd.Categorical(ts.dt.month_name(), categories=MONTHS, ordered=True)
    out["week"] = ts.dt.isocalendar().week.astype(int)
    out["weekday"] = pd.Categorical(ts.dt.day_name(), categories=order, ordered=True)
    out["hour"] = ts.dt.hour.astype(int)
    return out


# ---------- 集計 ----------
def summarize(df: pd.DataFrame, keys: list[str], value: str | None = None, how: str = "count") -> pd.DataFrame:
    if how not in {"count", "mean", "sum"}:
        raise ValueError("how must be 'count', 'mean' or 'sum'")
    need = set(keys) | ({value} if value else set())
    if not need.issubset(df.columns):
        raise ValueError(f"Required columns: {sorted(need)}")

    grouped = df.groupby(keys, observed=True)
    if how == "count":
        return grouped.size().reset_index(name="n")
    if value is None:
        raise ValueError(f"how={how!r} needs a value column")
    return grouped[value].agg(how).reset_index(name=f"{how}_{value}")


def weekday_hour_counts(df: pd.DataFrame) -> pd.DataFrame:
    return summarize(df, ["weekday", "hour"])


def weekday_hour_mean_distance(df: pd.DataFrame) -> pd.DataFrame:
    return summarize(df, ["weekday", "hour"], value="distance", how="mean")


def activity_summary(df: pd.DataFrame) -> pd.DataFrame:
    """Per-year, per-type totals: count, distance, calories, elevation gain."""
    return (
        df.groupby(["year", "activity_type"], observed=True)
          .agg(
              activities=("distance", "size"),
              total_distance=("distance", "sum"),
              mean_distance=("distance", "mean"),
              max_distance=("distance", "max"),
              total_calories=("calories", "sum"),
              total_elev_gain=("elev_gain", "sum"),
          )
          .reset_index()
          .sort_values(["year", "activities"], ascending=[True, False])
          .reset_index(drop=True)
    )


def monthly_distance(df: pd.DataFrame) -> pd.DataFrame:
    return (
        df.groupby(["year", "month"], observed=True)["distance"]
          .sum()
          .reset_index(name="total_distance")
    )


def daily_distance(df: pd.DataFrame) -> pd.DataFrame:
    day = df["date"].dt.normalize().rename("day")
    return df.groupby(day)["distance"].sum().reset_index(name="total_distance")


# ---------- 7x24 グリッド補完 ----------
def fill_grid(
    agg: pd.DataFrame,
    value: str,
    weekdays: list[str] | None = None,
    hours=range(24),
    fill_value=0,
) -> pd.DataFrame:
    """
    曜日 x 時間 の全組み合わせ（7 x 24 = 168行）を作り、集計結果を左結合する。
    集計に無い組み合わせは fill_value（既定 0）で埋める。

    集計側のキーが定義域の外にある・重複している場合は ValueError。
    """
    weekdays = list(weekdays or WEEKDAYS)
    hours = [int(h) for h in hours]
    if len(set(weekdays)) != len(weekdays) or len(set(hours)) != len(hours):
        raise ValueError("weekday/hour domain labels must be unique")
    need = {"weekday", "hour", value}
    if not need.issubset(agg.columns):
        raise ValueError(f"Required columns: {sorted(need)}")

    src = agg.reset_index(drop=True)
    right = pd.DataFrame({
        "weekday": src["weekday"].astype(str),
        "hour": src["hour"].astype(int),
        value: src[value],
    })
    outside = ~right["weekday"].isin(weekdays) | ~right["hour"].isin(hours)
    if outside.any():
        bad = right.loc[outside, ["weekday", "hour"]].head(5).itertuples(index=False)
        raise ValueError(f"aggregate keys outside the weekday x hour domain: {[tuple(k) for k in bad]}")
    dup = right.duplicated(["weekday", "hour"])
    if dup.any():
        bad = right.loc[dup, ["weekday", "hour"]].head(5).itertuples(index=False)
        raise ValueError(f"duplicate aggregate keys: {[tuple(k) for k in bad]}")

    grid = pd.MultiIndex.from_product([weekdays, hours], names=["weekday", "hour"]).to_frame(index=False)
    out = grid.merge(right, on=["weekday", "hour"], how="left")
    out[value] = pd.to_numeric(out[value].fillna(fill_value))
    if pd.api.types.is_integer_dtype(src[value]) and float(fill_value).is_integer():
        out[value] = out[value].astype(src[value].dtype)
    out["weekday"] = pd.Categorical(out["weekday"], categories=weekdays, ordered=True)
    return out
