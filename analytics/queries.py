# analytics/queries.py
"""Read-only lookups the dashboard runs against a filtered app set."""
from __future__ import annotations
from typing import Any, Dict, Iterable, Optional

import pandas as pd

from analytics.aggregate import ensure_columns, rated_apps
from analytics.report import generate_chart_data
from etl.clean_apps import APP_COLUMNS, REVIEW_COLUMNS

TOP_METRICS = {
    "rating": "rating",
    "installs": "installs",
    "reviews": "review_count",
}
POOR_RATING = 3.0
SEARCH_FIELDS = ("name", "category", "genres")


def top_apps(apps: pd.DataFrame, metric: str = "rating", limit: int = 10) -> pd.DataFrame:
    """Highest `limit` apps by rating / installs / reviews; unrated apps sort as 0."""
    if metric not in TOP_METRICS:
        raise ValueError(f"unknown metric {metric!r}; expected one of {sorted(TOP_METRICS)}")
    apps = ensure_columns(apps, APP_COLUMNS)
    key = pd.to_numeric(apps[TOP_METRICS[metric]], errors="coerce").fillna(0)
    order = key.sort_values(ascending=False, kind="stable").index
    return apps.loc[order].head(limit).reset_index(drop=True)

def poor_performing_apps(apps: pd.DataFrame, limit: int = 10) -> pd.DataFrame:
    rated = rated_apps(ensure_columns(apps, APP_COLUMNS))
    poor = rated[rated["rating"].astype(float) < POOR_RATING]
    return poor.sort_values("rating", kind="stable").head(limit).reset_index(drop=True)

def search_apps(apps: pd.DataFrame, query: Optional[str]) -> pd.DataFrame:
    """Case-insensitive substring match over name, category and genres."""
    apps = ensure_columns(apps, APP_COLUMNS)
    if not query or not str(query).strip():
        return apps.iloc[0:0].reset_index(drop=True)
    q = str(query).strip().lower()
    hit = pd.Series(False, index=apps.index)
    for field in SEARCH_FIELDS:
        hit |= apps[field].fillna("").astype(str).str.lower().str.contains(q, regex=False)
    return apps[hit].reset_index(drop=True)


def _find_category(analytics: Dict[str, Any], category: str) -> Optional[Dict[str, Any]]:
    for cat in analytics["categories"]["category_performance"]:
        if cat["category"] == category:
            return cat
    return None

def category_comparison(analytics: Dict[str, Any], categories: Iterable[str]) -> Optional[Dict[str, Any]]:
    """
    Side-by-side performance for the named categories. A category absent from
    the analytics gets a zero entry instead of being skipped.
    """
    categories = list(categories or [])
    if not analytics or not categories:
        return None

    rows = []
    for name in categories:
        rows.append(_find_category(analytics, name) or {
            "category": name, "app_count": 0, "avg_rating": 0.0,
            "total_installs": 0, "avg_installs": 0.0,
        })

    return {
        "categories": rows,
        "metrics": {
            metric: [{"category": r["category"], "value": r[metric]} for r in rows]
            for metric in ("avg_rating", "app_count", "total_installs")
        },
    }

def category_detail(analytics: Dict[str, Any], apps: pd.DataFrame,
                    reviews: pd.DataFrame, category: str) -> Optional[Dict[str, Any]]:
    """One category's performance entry plus its apps, their reviews and chart data."""
    if not analytics:
        return None
    perf = _find_category(analytics, category)
    if perf is None:
        return None

    apps = ensure_columns(apps, APP_COLUMNS)
    reviews = ensure_columns(reviews, REVIEW_COLUMNS)
    cat_apps = apps[apps["category"] == category].reset_index(drop=True)
    cat_reviews = reviews[reviews["app_name"].isin(set(cat_apps["name"]))].reset_index(drop=True)
    return {
        **perf,
        "apps": cat_apps,
        "reviews": cat_reviews,
        "chart_data": generate_chart_data(cat_apps),
    }
