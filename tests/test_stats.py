import logging

import numpy as np
import pandas as pd
import pytest

from analytics.stats import (
    EMPTY_STATS, basic_stats, correlation, frequency_analysis, outliers,
    percentile, safe_pct, to_datetime, trend_analysis,
)


def test_basic_stats_empty_is_zero_struct():
    assert basic_stats([]) == EMPTY_STATS
    assert basic_stats([None, float("nan")]) == EMPTY_STATS
    assert basic_stats([])["mode"] is None

def test_basic_stats_values():
    st = basic_stats([1, 2, 2, 3, 4, None])
    assert st["count"] == 5
    assert st["mean"] == pytest.approx(2.4)
    assert st["median"] == 2.0
    assert st["mode"] == 2.0
    assert st["min"] == 1.0 and st["max"] == 4.0
    assert st["variance"] == pytest.approx(np.var([1, 2, 2, 3, 4]))
    assert st["q1"] == 2.0 and st["q3"] == 3.0
    assert st["iqr"] == 1.0

def test_basic_stats_mode_tie_takes_smallest():
    assert basic_stats([3, 1, 3, 1, 2])["mode"] == 1.0

def test_basic_stats_accepts_series():
    st = basic_stats(pd.Series([4.5, np.nan, 3.5]))
    assert st["count"] == 2
    assert st["mean"] == 4.0

def test_correlation_perfect_and_inverse():
    assert correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
    assert correlation([1, 2, 3], [3, 2, 1]) == pytest.approx(-1.0)

def test_correlation_guards():
    assert correlation([1, 2, 3], [1, 2]) == 0.0
    assert correlation([1], [1]) == 0.0
    assert correlation([], []) == 0.0
    assert correlation([1, 1, 1], [1, 2, 3]) == 0.0
    assert correlation([5, 5], [5, 5]) == 0.0

def test_correlation_drops_incomplete_pairs():
    r = correlation([1, None, 2, 3, float("nan")], [2, 100, 4, 6, 7])
    assert r == pytest.approx(1.0)

def test_correlation_is_bounded():
    rng = np.random.default_rng(7)
    x = rng.normal(size=200)
    y = x * 0.5 + rng.normal(size=200)
    assert -1.0 <= correlation(x, y) <= 1.0

def test_frequency_analysis_top_n():
    out = frequency_analysis(["A", "B", "A", "C"], 2)
    assert out[0] == {"value": "A", "count": 2, "percentage": 50.0}
    assert out[1] == {"value": "B", "count": 1, "percentage": 25.0}
    assert len(out) == 2

def test_frequency_analysis_drops_blanks_and_keeps_first_seen_on_ties():
    out = frequency_analysis(["x", "", None, "y", float("nan"), "z", "y", "x"])
    assert [f["value"] for f in out] == ["x", "y", "z"]
    assert out[0]["percentage"] == pytest.approx(40.0)
    assert frequency_analysis([]) == []

def test_outliers_small_sample():
    res = outliers([1, 2, 100])
    assert res["outliers"] == []
    assert res["lower_bound"] == 0.0 and res["upper_bound"] == 0.0

def test_outliers_iqr_fences():
    res = outliers([1, 2, 3, 4, 5, 6, 7, 8, 100])
    assert res["outliers"] == [100.0]
    assert res["outlier_count"] == 1
    assert res["lower_bound"] == pytest.approx(3 - 1.5 * 4)
    assert res["upper_bound"] == pytest.approx(7 + 1.5 * 4)
    assert res["outlier_percentage"] == pytest.approx(100 / 9)

def test_percentile_and_safe_pct():
    assert percentile([1, 2, 3, 4], 50) == 2.5
    assert percentile([], 50) == 0.0
    assert safe_pct(1, 4) == 25.0
    assert safe_pct(3, 0) == 0.0

def test_trend_analysis_directions():
    up = [{"date": f"2018-0{i}-01", "value": i} for i in range(1, 6)]
    res = trend_analysis(up)
    assert res["trend"] == "increasing"
    assert res["slope"] == pytest.approx(1.0)
    assert res["correlation"] == pytest.approx(1.0)
    assert res["data_points"] == 5

    down = [{"date": d["date"], "value": -d["value"]} for d in up]
    assert trend_analysis(down)["trend"] == "decreasing"

    flat = [{"date": d["date"], "value": 3.0} for d in up]
    assert trend_analysis(flat)["trend"] == "stable"

def test_trend_analysis_sorts_by_date_and_drops_bad_points():
    series = [
        {"date": "March 3, 2018", "value": 3},
        {"date": "not a date", "value": 100},
        {"date": "January 1, 2018", "value": 1},
        {"date": "2018-02-02", "value": None},
        {"date": "February 2, 2018", "value": 2},
    ]
    res = trend_analysis(series)
    assert res["data_points"] == 3
    assert res["trend"] == "increasing"

def test_trend_analysis_insufficient():
    res = trend_analysis([{"date": "2018-01-01", "value": 1}])
    assert res == {"trend": "insufficient_data", "slope": 0.0, "correlation": 0.0, "data_points": 1}
    assert trend_analysis([])["trend"] == "insufficient_data"

def test_correlation_numeric_failure_maps_to_zero(caplog):
    with caplog.at_level(logging.WARNING, logger="analytics.stats"):
        assert correlation([1e308, -1e308, 1], [1, 2, 3]) == 0.0
    assert "correlation failed (3 pairs)" in caplog.text

def test_frequency_analysis_keeps_mixed_types_apart():
    out = frequency_analysis([1, 1.0, True, 1])
    assert [f["count"] for f in out] == [2, 1, 1]
    assert out[0]["value"] == 1 and isinstance(out[0]["value"], int)
    assert isinstance(out[1]["value"], float)
    assert out[2]["value"] is True

def test_to_datetime_missing_values():
    assert to_datetime(pd.NaT) is None
    assert to_datetime(None) is None
    assert to_datetime(float("nan")) is None
    assert to_datetime("   ") is None
    assert to_datetime(pd.Timestamp("2020-01-02")).day == 2

def test_trend_analysis_ignores_nat_dates():
    res = trend_analysis([{"date": pd.NaT, "value": 5}, {"date": "2020-01-01", "value": 1}])
    assert res["trend"] == "insufficient_data"
    assert res["data_points"] == 1
