# runlog/plots.py
# ============================================================
# 描画まわり
#  - 曜日 x 時間のタイル型ヒートマップ（件数・平均距離）
#  - カレンダー型ヒートマップ（1年 = 7行 x 週の列）
#  - 月別距離の棒グラフ
# ============================================================

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.cm import ScalarMappable
from matplotlib.colors import LinearSegmentedColormap, Normalize

from runlog.config import PipelineConfig

COLOR_SCHEMES = {
    "r2g": ["#D61818", "#FFAE63", "#FFFFBD", "#B5E384"],
    "g2r": ["#B5E384", "#FFFFBD", "#FFAE63", "#D61818"],
    "r2b": ["#B2182B", "#F4A582", "#F7F7F7", "#92C5DE", "#2166AC"],
    "w2b": ["#F1EEF6", "#BDC9E1", "#74A9CF", "#2B8CBE", "#045A8D"],
}
DAY_ABBR = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def to_matrix(grid: pd.DataFrame, value: str) -> pd.DataFrame:
    """Completed (weekday, hour) grid -> weekday rows x hour columns."""
    if isinstance(grid["weekday"].dtype, pd.CategoricalDtype):
        order = [str(c) for c in grid["weekday"].cat.categories]
    else:
        order = list(dict.fromkeys(grid["weekday"].astype(str)))
    hours = sorted(int(h) for h in grid["hour"].unique())
    flat = grid.assign(weekday=grid["weekday"].astype(str))
    return flat.pivot(index="weekday", columns="hour", values=value).reindex(index=order, columns=hours)


def calendar_heat(dates, values, varname: str, color: str = "r2g", ncolors: int = 99):
    """
    カレンダー型ヒートマップ。年ごとに1パネル（行 = 曜日[日曜始まり], 列 = 週）。
    同じ日に複数の値があれば合計する。データの無い日は空白。
    戻り値は matplotlib の Figure（保存は呼び出し側）。
    """
    if color not in COLOR_SCHEMES:
        raise ValueError(f"color must be one of {sorted(COLOR_SCHEMES)} (got {color!r})")
    if ncolors < 2:
        raise ValueError("ncolors must be >= 2")
    days = pd.to_datetime(pd.Series(list(dates)), errors="raise").dt.normalize()
    vals = pd.Series(list(values), dtype=float)
    if len(days) != len(vals):
        raise ValueError(f"dates and values differ in length ({len(days)} != {len(vals)})")
    if len(days) == 0:
        raise ValueError("nothing to draw: no dates given")

    daily = pd.DataFrame({"day": days.to_numpy(), "value": vals.to_numpy()}).groupby("day")["value"].sum()
    lo, hi = float(daily.min()), float(daily.max())
    if lo == hi:
        lo, hi = lo - 0.5, hi + 0.5

    cmap = LinearSegmentedColormap.from_list(color, COLOR_SCHEMES[color], N=ncolors).with_extremes(bad="white")
    norm = Normalize(vmin=lo, vmax=hi)
    years = sorted(daily.index.year.unique())

    fig, axes = plt.subplots(len(years), 1, figsize=(12, 1.9 * len(years) + 0.8), squeeze=False)
    for ax, year in zip(axes[:, 0], years):
        jan1 = pd.Timestamp(year=year, month=1, day=1)
        first_sunday = jan1 - pd.Timedelta(days=(jan1.dayofweek + 1) % 7)
        span = pd.date_range(jan1, pd.Timestamp(year=year, month=12, day=31), freq="D")
        cols = np.asarray((span - first_sunday).days // 7)
        rows = np.asarray((span.dayofweek + 1) % 7)  # Sunday = 0

        mat = np.full((7, int(cols.max()) + 1), np.nan)
        mat[rows, cols] = daily.reindex(span).to_numpy()
        ax.imshow(np.ma.masked_invalid(mat), cmap=cmap, norm=norm, aspect="equal")

        month_starts = pd.date_range(jan1, periods=12, freq="MS")
        ax.set_xticks(((month_starts - first_sunday).days // 7).tolist())
        ax.set_xticklabels([d.strftime("%b") for d in month_starts])
        ax.set_yticks(range(7))
        ax.set_yticklabels(DAY_ABBR, fontsize=7)
        ax.set_ylabel(str(year))
        ax.tick_params(length=0)

    fig.colorbar(ScalarMappable(norm=norm, cmap=cmap), ax=axes[:, 0].tolist(), label=varname, shrink=0.8)
    fig.suptitle(f"Calendar Heat Map of {varname}")
    return fig


@dataclass
class Plotter:
    figsize: tuple[float, float] = (10, 7)
    dpi: int = 100
    cmap: str = "YlOrRd"

    @classmethod
    def from_config(cls, cfg: PipelineConfig) -> "Plotter":
        return cls(figsize=cfg.figsize, dpi=cfg.dpi)

    def _save(self, fig, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=self.dpi)
        plt.close(fig)
        return path

    def weekly_heatmap(self, grid: pd.DataFrame, value: str, title: str, path: Path, label: str | None = None) -> Path:
        mat = to_matrix(grid, value)
        if mat.shape != (7, 24) or mat.isna().to_numpy().any():
            raise ValueError(f"weekly heatmap needs a complete 7 x 24 grid (got {len(grid)} rows)")

        fig, ax = plt.subplots(figsize=self.figsize)
        im = ax.imshow(mat.to_numpy(dtype=float), aspect="auto", cmap=self.cmap)
        ax.set_xticks(range(24))
        ax.set_xticklabels([str(h) for h in mat.columns])
        ax.set_yticks(range(7))
        ax.set_yticklabels(mat.index)
        ax.set_xlabel("Hour of day")
        ax.set_title(title)
        fig.colorbar(im, ax=ax, label=label or value)
        return self._save(fig, path)

    def render_weekly(self, counts_grid: pd.DataFrame, dist_grid: pd.DataFrame, results_dir: Path) -> list[Path]:
        results_dir = Path(results_dir)
        return [
            self.weekly_heatmap(counts_grid, "n", "Activities by weekday and hour",
                                results_dir / "heatmap_weekly_counts.png", label="activities"),
            self.weekly_heatmap(dist_grid, "mean_distance", "Mean distance by weekday and hour",
                                results_dir / "heatmap_weekly_dist.png", label="mean distance (km)"),
        ]

    def calendar(self, daily: pd.DataFrame, path: Path, varname: str = "Distance",
                 color: str = "r2g", ncolors: int = 99) -> Path:
        fig = calendar_heat(daily["day"], daily["total_distance"], varname, color=color, ncolors=ncolors)
        return self._save(fig, path)

    def monthly_distance(self, monthly: pd.DataFrame, path: Path) -> Path:
        labels = [f"{y}-{str(m)[:3]}" for y, m in zip(monthly["year"], monthly["month"])]
        fig, ax = plt.subplots(figsize=self.figsize)
        ax.bar(range(len(monthly)), monthly["total_distance"].astype(float), color="#2E86AB")
        ax.set_xticks(range(len(monthly)))
        ax.set_xticklabels(labels, rotation=90, fontsize=7)
        ax.set_ylabel("distance (km)")
        ax.set_title("Distance per month")
        fig.tight_layout()
        return self._save(fig, path)
