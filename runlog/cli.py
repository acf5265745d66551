# runlog/cli.py
# ============================================================
# パイプライン実行: Load -> Clean -> Filter/Derive -> Aggregate -> Render
#   python -m runlog.cli --in data/raw/activities.csv --results results --verbose
# ============================================================

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime as dt
from pathlib import Path

import pandas as pd

from runlog.config import ON_INVALID, PipelineConfig
from runlog.etl import (
    ActivityFilter,
    Cleaner,
    DataLoader,
    activity_summary,
    add_calendar_fields,
    daily_distance,
    fill_grid,
    monthly_distance,
    weekday_hour_counts,
    weekday_hour_mean_distance,
)
from runlog.plots import Plotter

log = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    raw: pd.DataFrame
    clean: pd.DataFrame
    activities: pd.DataFrame
    counts_grid: pd.DataFrame
    dist_grid: pd.DataFrame
    summary: pd.DataFrame
    written: list[Path] = field(default_factory=list)


def run_pipeline(cfg: PipelineConfig, calendar: bool = True, verbose: bool = False) -> PipelineResult:
    if verbose: print(f"[1/5] Load: {cfg.input_path}")
    raw = DataLoader().load(cfg.input_path)

    if verbose: print(f"[2/5] Clean (on_invalid={cfg.on_invalid})")
    clean = Cleaner(on_invalid=cfg.on_invalid).clean(raw)

    if verbose: print(f"[3/5] Filter (max_distance={cfg.max_distance}) + calendar fields")
    activities = ActivityFilter.from_config(cfg).apply(clean)
    activities = add_calendar_fields(activities, cfg.weekday_order)

    if verbose: print("[4/5] Aggregate -> 7x24 grids")
    counts_grid = fill_grid(weekday_hour_counts(activities), "n", cfg.weekday_order)
    dist_grid = fill_grid(weekday_hour_mean_distance(activities), "mean_distance", cfg.weekday_order)
    summary = activity_summary(activities)

    if verbose: print(f"[5/5] Figures -> {cfg.results_dir}")
    plotter = Plotter.from_config(cfg)
    written = plotter.render_weekly(counts_grid, dist_grid, cfg.results_dir)
    if activities.empty:
        log.warning("no activities left after filtering; skipping calendar and monthly charts")
    else:
        written.append(plotter.monthly_distance(monthly_distance(activities), cfg.results_dir / "monthly_distance.png"))
        if calendar:
            written.append(plotter.calendar(
                daily_distance(activities),
                cfg.results_dir / "calendar_distance.png",
                varname="Distance (km)",
                color=cfg.calendar_color,
                ncolors=cfg.calendar_ncolors,
            ))

    return PipelineResult(raw, clean, activities, counts_grid, dist_grid, summary, written)


def build_digest(cfg: PipelineConfig, result: PipelineResult) -> str:
    acts = result.activities
    lines = [
        "=== RUNLOG RUN SUMMARY ===",
        f"when      : {dt.now().strftime('%Y-%m-%d %H:%M:%S')}",
        f"in        : {cfg.input_path}",
        f"results   : {cfg.results_dir}",
        f"filter    : start={cfg.start_date} end={cfg.end_date} max_distance={cfg.max_distance} types={cfg.activity_types}",
        f"rows      : raw={len(result.raw)} -> clean={len(result.clean)} -> filtered={len(acts)}",
    ]
    if not acts.empty:
        d = acts["distance"]
        lines.append(f"distance  : total={d.sum():.1f} mean={d.mean():.2f} max={d.max():.2f} (km)")
        top = result.counts_grid.sort_values("n", ascending=False).iloc[0]
        lines.append(f"busiest   : {top['weekday']} {int(top['hour']):02d}:00 (n={int(top['n'])})")
    lines.append("figures   : " + ", ".join(p.name for p in result.written))
    if not result.summary.empty:
        lines.append("--- summary head (first 5 rows) ---")
        lines.append(result.summary.head(5).to_csv(index=False).strip())
    return "\n".join(lines) + "\n"


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Running activity heatmaps")
    ap.add_argument("--in", dest="in_path", type=Path, help="活動記録CSV")
    ap.add_argument("--results", dest="results_dir", type=Path, help="PNGの保存先")
    ap.add_argument("--config", type=Path, default=None, help="設定JSON（フラグが優先）")
    ap.add_argument("--start", dest="start_date", help="この日以降（YYYY-MM-DD）")
    ap.add_argument("--end", dest="end_date", help="この日まで（YYYY-MM-DD, 当日を含む）")
    ap.add_argument("--max-distance", type=float, help="これを超える距離(km)は外れ値として除外")
    ap.add_argument("--type", dest="activity_types", action="append", help="種目で絞る（複数可）")
    ap.add_argument("--on-invalid", choices=sorted(ON_INVALID), help="日付・距離が読めない行: raise / drop")
    ap.add_argument("--out", dest="out_path", type=Path, default=None, help="年・種目別サマリーCSV")
    ap.add_argument("--report", type=Path, default=None, help="実行レポートを保存する先（.txt推奨）")
    ap.add_argument("--no-calendar", dest="calendar", action="store_false", help="カレンダーヒートマップを描かない")
    ap.add_argument("--verbose", action="store_true", help="途中経過を表示")
    ap.set_defaults(calendar=True)
    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = PipelineConfig.from_json(args.config) if args.config else PipelineConfig()
        cfg = cfg.replace(
            input_path=args.in_path,
            results_dir=args.results_dir,
            start_date=args.start_date,
            end_date=args.end_date,
            max_distance=args.max_distance,
            activity_types=args.activity_types,
            on_invalid=args.on_invalid,
        )
        result = run_pipeline(cfg, calendar=args.calendar, verbose=args.verbose)
    except (FileNotFoundError, ValueError) as e:
        # ActivityDataError / 設定ミス / JSON 破損はここ
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.out_path is not None:
        args.out_path.parent.mkdir(parents=True, exist_ok=True)
        result.summary.to_csv(args.out_path, index=False)

    digest = build_digest(cfg, result)
    print(digest)

    if args.report is not None:
        args.report.parent.mkdir(parents=True, exist_ok=True)
        with open(args.report, "w", encoding="utf-8") as f:
            f.write(digest)
        print(f"[report] wrote {args.report}")

    print(f"Done: wrote {len(result.written)} figure(s) to {cfg.results_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
