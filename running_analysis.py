#%% セル1：パラメータ
from pathlib import Path
import pandas as pd

from runlog.config import PipelineConfig

cfg = PipelineConfig(
    input_path=Path("data/raw/activities.csv"),
    results_dir=Path("results"),
    start_date=pd.Timestamp("2021-01-01"),
    max_distance=60.0,  # 60km超は記録ミス（種目の付け間違いなど）として除外
)

#%% セル2：読み込み・整形・絞り込み
from runlog.etl import DataLoader, Cleaner, ActivityFilter, add_calendar_fields

raw = DataLoader().load(cfg.input_path)
clean = Cleaner(on_invalid=cfg.on_invalid).clean(raw)
runs = add_calendar_fields(ActivityFilter.from_config(cfg).apply(clean), cfg.weekday_order)
print(raw.shape, "->", clean.shape, "->", runs.shape)

#%% セル3：年・種目別のまとめ
from runlog.etl import activity_summary, monthly_distance

print(activity_summary(runs))
print(monthly_distance(runs))

#%% セル4：曜日 x 時間のヒートマップ（168マスを0で補完してから描く）
from runlog.etl import fill_grid, weekday_hour_counts, weekday_hour_mean_distance
from runlog.plots import Plotter

counts = fill_grid(weekday_hour_counts(runs), "n", cfg.weekday_order)
dist = fill_grid(weekday_hour_mean_distance(runs), "mean_distance", cfg.weekday_order)
print(len(counts), len(dist))  # 168 168
Plotter.from_config(cfg).render_weekly(counts, dist, cfg.results_dir)

#%% セル5：カレンダーヒートマップ
from runlog.etl import daily_distance

Plotter.from_config(cfg).calendar(daily_distance(runs), cfg.results_dir / "calendar_distance.png",
                                  varname="Distance (km)", color="r2g", ncolors=99)

# %%
