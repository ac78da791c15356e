# analytics/stats.py
"""
Generic statistics over plain numeric sequences.

Nothing here knows about apps or reviews. Inputs may be lists, numpy arrays
or pandas Series; missing values (None / NaN) are dropped first, and every
function degrades to a zero/neutral result instead of raising or returning
NaN.
"""
from __future__ import annotations
import datetime as _dt
import logging
import math
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, Optional

import numpy as np
import pandas as pd
from dateutil import parser as dparser

log = logging.getLogger(__name__)

IQR_FENCE = 1.5
MIN_OUTLIER_SAMPLE = 4
TREND_SLOPE_THRESHOLD = 0.1

EMPTY_STATS = {
    "count": 0, "mean": 0.0, "median": 0.0, "mode": None,
    "min": 0.0, "max": 0.0, "std": 0.0, "variance": 0.0,
    "q1": 0.0, "q3": 0.0, "iqr": 0.0,
}


# ---------- helpers ----------
def _as_series(values) -> pd.Series:
    if isinstance(values, pd.Series):
        return values
    if values is None:
        return pd.Series([], dtype=object)
    return pd.Series(list(values), dtype=object)

def _numeric(values) -> pd.Series:
    """Coerce to float, NaN where a value is missing or not a number."""
    s = pd.to_numeric(_as_series(values), errors="coerce").astype(float)
    return s.where(np.isfinite(s))

def clean_numeric(values) -> np.ndarray:
    return _numeric(values).dropna().to_numpy(dtype=float)

def safe_div(a, b, default=0.0) -> float:
    return float(a) / float(b) if b else default

def safe_pct(part, whole) -> float:
    """part/whole*100, defined as 0 for an empty denominator."""
    return safe_div(part, whole) * 100

def _is_blank(v) -> bool:
    if isinstance(v, str):
        return v == ""
    try:
        return bool(pd.isna(v))
    except (TypeError, ValueError):
        return False

def percentile(values, p: float) -> float:
    """p-th percentile (0-100), linear interpolation between closest ranks."""
    arr = clean_numeric(values)
    if not arr.size:
        return 0.0
    return float(np.percentile(arr, p))

def mean_or_zero(values) -> float:
    arr = clean_numeric(values)
    return float(arr.mean()) if arr.size else 0.0


# ---------- descriptive ----------
def basic_stats(values) -> Dict[str, Any]:
    arr = clean_numeric(values)
    if not arr.size:
        return dict(EMPTY_STATS)

    q1, median, q3 = np.percentile(arr, [25, 50, 75])
    # np.unique sorts, argmax takes the first max -> smallest of tied modes
    uniq, counts = np.unique(arr, return_counts=True)
    return {
        "count": int(arr.size),
        "mean": float(arr.mean()),
        "median": float(median),
        "mode": float(uniq[np.argmax(counts)]),
        "min": float(arr.min()),
        "max": float(arr.max()),
        "std": float(arr.std()),
        "variance": float(arr.var()),
        "q1": float(q1),
        "q3": float(q3),
        "iqr": float(q3 - q1),
    }


def correlation(x, y) -> float:
    """Pearson r over the pairs where both sides are present; 0 when undefined."""
    xs, ys = _numeric(x).reset_index(drop=True), _numeric(y).reset_index(drop=True)
    if len(xs) != len(ys) or not len(xs):
        return 0.0
    ok = xs.notna() & ys.notna()
    if ok.sum() < 2:
        return 0.0
    a = xs[ok].to_numpy(dtype=float)
    b = ys[ok].to_numpy(dtype=float)
    try:
        with np.errstate(divide="raise", invalid="raise", over="raise"):
            if np.ptp(a) == 0 or np.ptp(b) == 0:
                return 0.0
            r = float(np.corrcoef(a, b)[0, 1])
    except (FloatingPointError, ValueError) as e:
        log.warning(f"correlation failed ({len(a)} pairs): {e}")
        return 0.0
    if not math.isfinite(r):
        return 0.0
    return max(-1.0, min(1.0, r))


def frequency_analysis(values, top_n: int = 10) -> List[Dict[str, Any]]:
    """
    Top-N most frequent values as {value, count, percentage}; the percentage is
    over every non-empty value, not just the top N. Equal counts keep
    first-seen order. Values are counted by their string form, so 1, 1.0 and
    True stay distinct; `value` is the first-seen original.
    """
    clean = [v for v in _as_series(values).tolist() if not _is_blank(v)]
    total = len(clean)
    if not total:
        return []
    first = {}
    for v in clean:
        first.setdefault(str(v), v)
    counts = Counter(str(v) for v in clean)
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])
    return [
        {"value": first[k], "count": c, "percentage": safe_pct(c, total)}
        for k, c in ranked[:top_n]
    ]


def outliers(values) -> Dict[str, Any]:
    arr = clean_numeric(values)
    if arr.size < MIN_OUTLIER_SAMPLE:
        return {"outliers": [], "lower_bound": 0.0, "upper_bound": 0.0,
                "outlier_count": 0, "outlier_percentage": 0.0}

    st = basic_stats(arr)
    lower = st["q1"] - IQR_FENCE * st["iqr"]
    upper = st["q3"] + IQR_FENCE * st["iqr"]
    found = [float(v) for v in arr if v < lower or v > upper]
    return {
        "outliers": found,
        "lower_bound": lower,
        "upper_bound": upper,
        "outlier_count": len(found),
        "outlier_percentage": safe_pct(len(found), arr.size),
    }


# ---------- trend ----------
def to_datetime(val) -> Optional[_dt.datetime]:
    if _is_blank(val):
        return None
    if isinstance(val, _dt.datetime):
        return val.replace(tzinfo=None)
    if isinstance(val, _dt.date):
        return _dt.datetime(val.year, val.month, val.day)
    if isinstance(val, str) and not val.strip():
        return None
    try:
        return dparser.parse(str(val)).replace(tzinfo=None)
    except (ValueError, OverflowError):
        return None

def _insufficient(n: int = 0) -> Dict[str, Any]:
    return {"trend": "insufficient_data", "slope": 0.0, "correlation": 0.0, "data_points": n}

def trend_analysis(series: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Linear trend of `value` over chronologically ordered {date, value} points.
    The x axis is the position after sorting, not the date distance.
    """
    points = []
    for item in series or []:
        when = to_datetime(item.get("date"))
        val = _numeric([item.get("value")]).iloc[0]
        if when is not None and not math.isnan(val):
            points.append((when, float(val)))
    if len(points) < 2:
        return _insufficient(len(points))

    points.sort(key=lambda p: p[0])
    y = np.array([v for _, v in points])
    x = np.arange(len(y), dtype=float)

    n = len(x)
    denom = n * (x * x).sum() - x.sum() ** 2
    slope = float((n * (x * y).sum() - x.sum() * y.sum()) / denom) if denom else 0.0

    trend = "stable"
    if slope > TREND_SLOPE_THRESHOLD:
        trend = "increasing"
    elif slope < -TREND_SLOPE_THRESHOLD:
        trend = "decreasing"

    return {
        "trend": trend,
        "slope": slope,
        "correlation": correlation(x, y),
        "data_points": n,
    }
