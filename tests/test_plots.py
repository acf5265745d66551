import matplotlib.pyplot as plt
import pandas as pd
import pytest

from runlog.etl import fill_grid
from runlog.plots import Plotter, calendar_heat, to_matrix


def _grid(value="n"):
    agg = pd.DataFrame({"weekday": ["Sunday", "Tuesday"], "hour": [8, 18], value: [3, 1]})
    return fill_grid(agg, value)


def test_to_matrix_shape_and_order():
    mat = to_matrix(_grid(), "n")
    assert mat.shape == (7, 24)
    assert mat.index[0] == "Sunday"
    assert mat.loc["Sunday", 8] == 3
    assert mat.loc["Tuesday", 18] == 1
    assert mat.to_numpy().sum() == 4


def test_weekly_heatmap_writes_png(tmp_path):
    path = Plotter(figsize=(10, 7), dpi=50).weekly_heatmap(_grid(), "n", "counts", tmp_path / "sub" / "h.png")
    assert path.exists() and path.stat().st_size > 0
    assert path.read_bytes()[:4] == b"\x89PNG"


def test_weekly_heatmap_rejects_incomplete_grid(tmp_path):
    partial = _grid().iloc[:100]
    with pytest.raises(ValueError, match="complete"):
        Plotter().weekly_heatmap(partial, "n", "counts", tmp_path / "h.png")


def test_render_weekly_file_names(tmp_path):
    counts = _grid("n")
    dist = _grid("mean_distance")
    paths = Plotter(dpi=40).render_weekly(counts, dist, tmp_path)
    assert [p.name for p in paths] == ["heatmap_weekly_counts.png", "heatmap_weekly_dist.png"]
    assert all(p.exists() for p in paths)


def test_calendar_heat_one_panel_per_year():
    dates = pd.to_datetime(["2020-12-30", "2021-01-03", "2021-01-03", "2021-06-15"])
    fig = calendar_heat(dates, [5.0, 10.0, 2.0, 21.1], "Distance", color="w2b", ncolors=10)
    try:
        # two year panels + colorbar
        assert len(fig.axes) == 3
        assert fig.axes[0].get_ylabel() == "2020"
        assert fig.axes[1].get_ylabel() == "2021"
    finally:
        plt.close(fig)


def test_calendar_heat_single_value():
    fig = calendar_heat(["2021-03-01"], [7], "Distance")
    plt.close(fig)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"dates": ["2021-01-01"], "values": [1.0], "color": "rainbow"},
        {"dates": ["2021-01-01"], "values": [1.0], "ncolors": 1},
        {"dates": ["2021-01-01", "2021-01-02"], "values": [1.0]},
        {"dates": [], "values": []},
    ],
)
def test_calendar_heat_bad_input(kwargs):
    with pytest.raises(ValueError):
        calendar_heat(varname="Distance", **kwargs)


def test_calendar_and_monthly_writers(tmp_path):
    daily = pd.DataFrame({"day": pd.to_datetime(["2021-01-03", "2021-01-05"]), "total_distance": [18.4, 8.0]})
    cal = Plotter(dpi=40).calendar(daily, tmp_path / "cal.png", color="g2r", ncolors=5)
    assert cal.exists()

    monthly = pd.DataFrame({"year": [2021, 2021], "month": ["January", "February"], "total_distance": [120.5, 80.0]})
    bars = Plotter(dpi=40).monthly_distance(monthly, tmp_path / "monthly.png")
    assert bars.exists()
