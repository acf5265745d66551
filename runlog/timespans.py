# runlog/timespans.py
# ============================================================
# 日付時刻の基本操作（チュートリアル部分）
#  - 文字列 -> Timestamp（ymd / mdy / dmy 順）
#  - 年・月・曜日などの成分の取り出しと書き換え
#  - duration（正確な秒数） と period（カレンダー上の長さ）
#  - Interval（開始・終了に固定された区間）
# ============================================================

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import pandas as pd

# order -> (dayfirst, yearfirst)
ORDERS = {"ymd": (False, True), "mdy": (False, False), "dmy": (True, False)}

# lubridate 流: 1年 = 365.25日, 1か月 = 1年 / 12
DURATION_SECONDS = {
    "years": 365.25 * 86400,
    "months": 365.25 * 86400 / 12,
    "weeks": 7 * 86400,
    "days": 86400,
    "hours": 3600,
    "minutes": 60,
    "seconds": 1,
}
PERIOD_UNITS = {"years", "months", "weeks", "days", "hours", "minutes", "seconds"}
FLOOR_UNITS = ("second", "minute", "hour", "day", "week", "month", "year")


def parse_datetime(text: str, order: str = "ymd", tz: str | None = None) -> pd.Timestamp:
    """
    order は "ymd" / "mdy" / "dmy"、時刻も残すなら "_hms" を付ける（例: "mdy_hms"）。
    "_hms" なしの場合は日付だけ（00:00:00）になる。
    解釈できない文字列は NaT にせず ValueError。
    """
    base, _, suffix = order.partition("_")
    if base not in ORDERS or suffix not in ("", "hms"):
        raise ValueError(f"unknown order {order!r}; use one of {sorted(ORDERS)} with optional '_hms'")
    dayfirst, yearfirst = ORDERS[base]

    ts = pd.to_datetime(text, dayfirst=dayfirst, yearfirst=yearfirst, errors="coerce")
    if pd.isna(ts):
        raise ValueError(f"cannot parse {text!r} as {order}")
    if not suffix:
        ts = ts.normalize()
    if tz is not None:
        ts = ts.tz_localize(tz) if ts.tzinfo is None else ts.tz_convert(tz)
    return ts


def components(ts) -> dict:
    ts = pd.Timestamp(ts)
    return {
        "year": ts.year,
        "month": ts.month,
        "month_name": ts.month_name(),
        "day": ts.day,
        "yday": ts.dayofyear,
        "weekday": ts.day_name(),
        "wday": (ts.dayofweek + 1) % 7 + 1,  # 1 = Sunday
        "week": ts.isocalendar()[1],
        "hour": ts.hour,
        "minute": ts.minute,
        "second": ts.second,
        "leap_year": bool(ts.is_leap_year),
    }


def update(ts, **fields) -> pd.Timestamp:
    allowed = {"year", "month", "day", "hour", "minute", "second"}
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"cannot update {sorted(unknown)}; allowed: {sorted(allowed)}")
    return pd.Timestamp(ts).replace(**fields)


# ---------- duration / period ----------
def duration(**units) -> pd.Timedelta:
    """Exact span in seconds. years/months are fixed averages (365.25 days / 12)."""
    unknown = set(units) - set(DURATION_SECONDS)
    if unknown:
        raise ValueError(f"unknown duration units: {sorted(unknown)}")
    return pd.Timedelta(seconds=sum(DURATION_SECONDS[u] * n for u, n in units.items()))


def period(**units) -> pd.DateOffset:
    """Calendar span: 1 month is however long that month is, 1 day keeps the clock time."""
    unknown = set(units) - PERIOD_UNITS
    if unknown:
        raise ValueError(f"unknown period units: {sorted(unknown)}")
    return pd.DateOffset(**units)


def shift(ts, span) -> pd.Timestamp:
    if not isinstance(span, (timedelta, pd.DateOffset)):
        raise TypeError(f"span must be a duration or a period, not {type(span).__name__}")
    return pd.Timestamp(ts) + span


def _scaled(span, k: int):
    # k 回ずつ足すのではなく、単位ごとに k 倍した1つの period にする（月末の寄せ方が start 基準になる）
    if isinstance(span, pd.DateOffset):
        return pd.DateOffset(**{u: v * k * span.n for u, v in span.kwds.items()})
    return span * k


@dataclass(frozen=True)
class Interval:
    """開始・終了の2時点に固定された区間。start > end（負の区間）も許す。"""

    start: pd.Timestamp
    end: pd.Timestamp

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", pd.Timestamp(self.start))
        object.__setattr__(self, "end", pd.Timestamp(self.end))

    @property
    def length(self) -> pd.Timedelta:
        return self.end - self.start

    def _bounds(self) -> tuple[pd.Timestamp, pd.Timestamp]:
        return min(self.start, self.end), max(self.start, self.end)

    def time_length(self, unit: str = "seconds") -> float:
        if unit not in DURATION_SECONDS:
            raise ValueError(f"unknown unit {unit!r}")
        return self.length.total_seconds() / DURATION_SECONDS[unit]

    def count(self, span: pd.DateOffset) -> int:
        # 区間に収まる period の個数（端数切り捨て、負の区間なら負）
        lo, hi = self._bounds()
        step = (lo + span) - lo
        if step <= pd.Timedelta(0):
            raise ValueError("period must be positive")
        # 最初の1回分の長さで見積もってから前後に補正（月の長さの違いで少しずれる）
        n = int((hi - lo) / step)
        while n > 0 and lo + _scaled(span, n) > hi:
            n -= 1
        while lo + _scaled(span, n + 1) <= hi:
            n += 1
        return n if self.start <= self.end else -n

    def contains(self, ts) -> bool:
        lo, hi = self._bounds()
        return lo <= pd.Timestamp(ts) <= hi

    __contains__ = contains

    def overlaps(self, other: "Interval") -> bool:
        lo, hi = self._bounds()
        olo, ohi = other._bounds()
        return lo <= ohi and olo <= hi

    def intersect(self, other: "Interval") -> "Interval | None":
        if not self.overlaps(other):
            return None
        lo, hi = self._bounds()
        olo, ohi = other._bounds()
        return Interval(max(lo, olo), min(hi, ohi))

    def shift(self, span) -> "Interval":
        return Interval(shift(self.start, span), shift(self.end, span))

    def flip(self) -> "Interval":
        return Interval(self.end, self.start)

    def standardize(self) -> "Interval":
        return Interval(*self._bounds())


# ---------- 丸め ----------
def floor_date(ts, unit: str) -> pd.Timestamp:
    ts = pd.Timestamp(ts)
    if unit == "second":
        return ts.floor("s")
    if unit == "minute":
        return ts.floor("min")
    if unit == "hour":
        return ts.floor("h")
    if unit == "day":
        return ts.normalize()
    if unit == "week":  # 日曜始まり
        day = ts.normalize()
        return day - pd.DateOffset(days=(day.dayofweek + 1) % 7)
    if unit == "month":
        return ts.normalize().replace(day=1)
    if unit == "year":
        return ts.normalize().replace(month=1, day=1)
    raise ValueError(f"unit must be one of {FLOOR_UNITS}")


def ceiling_date(ts, unit: str) -> pd.Timestamp:
    ts = pd.Timestamp(ts)
    floored = floor_date(ts, unit)
    if floored == ts:
        return ts
    return floored + pd.DateOffset(**{unit + "s": 1})


# ---------- タイムゾーン ----------
def with_tz(ts, tz: str) -> pd.Timestamp:
    """Same instant, shown in another zone."""
    ts = pd.Timestamp(ts)
    if ts.tzinfo is None:
        raise ValueError("with_tz needs a timezone-aware timestamp; use force_tz for naive ones")
    return ts.tz_convert(tz)


def force_tz(ts, tz: str) -> pd.Timestamp:
    """Same clock time, different zone (a different instant)."""
    ts = pd.Timestamp(ts)
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.tz_localize(tz)
