# analytics/aggregate.py
"""
Category, rating, sentiment and correlation aggregates over cleaned frames.

Every function is a pure function of the frame it is given: no caching,
no mutation. Empty frames produce zero-valued results.
"""
from __future__ import annotations
from typing import Any, Dict, List, NamedTuple, Sequence

import pandas as pd

from analytics.stats import (
    basic_stats, correlation, frequency_analysis, mean_or_zero, outliers,
    safe_pct, to_datetime, trend_analysis,
)
from etl.clean_apps import APP_COLUMNS, REVIEW_COLUMNS, SENTIMENT_LABELS


class RatingBin(NamedTuple):
    label: str
    lo: float
    hi: float
    closed: bool = False  # include hi


RATING_BINS: tuple[RatingBin, ...] = (
    RatingBin("1.0-1.9", 1.0, 2.0),
    RatingBin("2.0-2.9", 2.0, 3.0),
    RatingBin("3.0-3.9", 3.0, 4.0),
    RatingBin("4.0-4.4", 4.0, 4.5),
    RatingBin("4.5-5.0", 4.5, 5.0, closed=True),
)

TOP_RATED_MIN = 4.5
POORLY_RATED_MAX = 3.0
HIGH_RATED_MIN = 4.0
APP_LIST_LIMIT = 10
TOP_CATEGORIES = 10

APP_CARD_COLUMNS = [
    "name", "category", "rating", "review_count", "installs",
    "installs_category", "price", "type", "content_rating", "genres",
]


# ---------- frame helpers ----------
def ensure_columns(df: pd.DataFrame, columns: Sequence[str]) -> pd.DataFrame:
    missing = [c for c in columns if c not in df.columns]
    if not missing:
        return df
    return df.reindex(columns=list(df.columns) + missing)

def _apps(apps: pd.DataFrame) -> pd.DataFrame:
    return ensure_columns(apps, APP_COLUMNS)

def rated_apps(apps: pd.DataFrame) -> pd.DataFrame:
    return apps[pd.to_numeric(apps["rating"], errors="coerce").fillna(0) > 0]

def records(df: pd.DataFrame, columns: Sequence[str] = APP_CARD_COLUMNS) -> List[Dict[str, Any]]:
    """DataFrame rows as plain dicts; NaN becomes None so results serialise cleanly."""
    cols = [c for c in columns if c in df.columns]
    sub = df[cols].astype(object)
    return sub.where(sub.notna(), None).to_dict("records")


# ---------- categories ----------
def category_performance(apps: pd.DataFrame) -> List[Dict[str, Any]]:
    apps = _apps(apps)
    rows = []
    for category, g in apps.groupby("category", sort=False):
        ratings = rated_apps(g)["rating"]
        rating_stats = basic_stats(ratings)
        rows.append({
            "category": category,
            "app_count": int(len(g)),
            "avg_rating": rating_stats["mean"],
            "median_rating": rating_stats["median"],
            "total_installs": int(g["installs"].sum()),
            "avg_installs": mean_or_zero(g["installs"]),
            "total_reviews": int(g["review_count"].sum()),
            "avg_reviews": mean_or_zero(g["review_count"]),
            "paid_apps_count": int(g["is_paid"].fillna(False).astype(bool).sum()),
            "popular_apps_count": int(g["is_popular"].fillna(False).astype(bool).sum()),
            "rating_stats": rating_stats,
        })
    # sorted() is stable: equal counts keep first-seen group order
    return sorted(rows, key=lambda r: -r["app_count"])

def market_share(apps: pd.DataFrame) -> Dict[str, Any]:
    apps = _apps(apps)
    total_apps = int(len(apps))
    total_installs = int(apps["installs"].sum()) if total_apps else 0
    breakdown = [
        {
            **cat,
            "app_market_share": safe_pct(cat["app_count"], total_apps),
            "install_market_share": safe_pct(cat["total_installs"], total_installs),
        }
        for cat in category_performance(apps)
    ]
    return {
        "total_apps": total_apps,
        "total_installs": total_installs,
        "category_breakdown": breakdown,
    }

def category_analytics(apps: pd.DataFrame) -> Dict[str, Any]:
    apps = _apps(apps)
    return {
        "category_performance": category_performance(apps),
        "market_share": market_share(apps),
        "top_categories": frequency_analysis(apps["category"], TOP_CATEGORIES),
        "total_categories": int(apps["category"].nunique()),
    }


# ---------- ratings ----------
def rating_histogram(ratings: pd.Series) -> Dict[str, int]:
    ratings = pd.to_numeric(ratings, errors="coerce")
    out = {}
    for b in RATING_BINS:
        upper = ratings <= b.hi if b.closed else ratings < b.hi
        out[b.label] = int(((ratings >= b.lo) & upper).sum())
    return out

def rating_analysis(apps: pd.DataFrame) -> Dict[str, Any]:
    rated = rated_apps(_apps(apps))
    ratings = rated["rating"].astype(float)
    rating_stats = basic_stats(ratings)

    top = (rated[ratings >= TOP_RATED_MIN]
           .sort_values("rating", ascending=False, kind="stable")
           .head(APP_LIST_LIMIT))
    poor = (rated[ratings < POORLY_RATED_MAX]
            .sort_values("rating", ascending=True, kind="stable")
            .head(APP_LIST_LIMIT))

    return {
        "rating_distribution": {
            "total": int(len(ratings)),
            "distribution": rating_histogram(ratings),
            "stats": rating_stats,
        },
        "rating_stats": rating_stats,
        "rating_outliers": outliers(ratings),
        "top_rated_apps": records(top),
        "poorly_rated_apps": records(poor),
        "high_rated_percentage": safe_pct(int((ratings >= HIGH_RATED_MIN).sum()), len(ratings)),
    }


# ---------- sentiment ----------
def sentiment_analysis(reviews: pd.DataFrame) -> Dict[str, Any]:
    reviews = ensure_columns(reviews, REVIEW_COLUMNS)
    total = int(len(reviews))
    counts = {
        label: int(reviews[f"is_{label}"].fillna(False).astype(bool).sum())
        for label in SENTIMENT_LABELS
    }
    return {
        "total_reviews": total,
        "sentiment_counts": counts,
        "sentiment_percentages": {label: safe_pct(c, total) for label, c in counts.items()},
        "polarity_stats": basic_stats(reviews["polarity"]),
        "subjectivity_stats": basic_stats(reviews["subjectivity"]),
    }


# ---------- correlations ----------
def correlation_analytics(apps: pd.DataFrame) -> Dict[str, float]:
    apps = _apps(apps)
    full = apps[
        (pd.to_numeric(apps["rating"], errors="coerce").fillna(0) > 0)
        & (apps["review_count"].fillna(0) > 0)
        & (apps["installs"].fillna(0) > 0)
        & pd.to_numeric(apps["price"], errors="coerce").notna()
    ]
    sized = full[full["size_bytes"].notna()]
    return {
        "rating_vs_reviews": correlation(full["rating"], full["review_count"]),
        "rating_vs_installs": correlation(full["rating"], full["installs"]),
        "reviews_vs_installs": correlation(full["review_count"], full["installs"]),
        "size_vs_installs": correlation(sized["size_bytes"], sized["installs"]),
        "price_vs_rating": correlation(full["price"], full["rating"]),
        "price_vs_installs": correlation(full["price"], full["installs"]),
    }


# ---------- overview ----------
def overview(apps: pd.DataFrame) -> Dict[str, Any]:
    apps = _apps(apps)
    total = int(len(apps))
    with_ratings = int(apps["has_rating"].fillna(False).astype(bool).sum())
    paid = int(apps["is_paid"].fillna(False).astype(bool).sum())
    popular = int(apps["is_popular"].fillna(False).astype(bool).sum())
    return {
        "total_apps": total,
        "apps_with_ratings": with_ratings,
        "paid_apps": paid,
        "free_apps": total - paid,
        "popular_apps": popular,
        "total_installs": int(apps["installs"].sum()) if total else 0,
        "total_reviews": int(apps["review_count"].sum()) if total else 0,
        "avg_rating": mean_or_zero(rated_apps(apps)["rating"]),
        "ratings_percentage": safe_pct(with_ratings, total),
        "paid_apps_percentage": safe_pct(paid, total),
        "popular_apps_percentage": safe_pct(popular, total),
    }


# ---------- trends ----------
def update_trend(apps: pd.DataFrame) -> Dict[str, Any]:
    """Mean rating per 'Last Updated' month, and the linear trend across months."""
    rated = rated_apps(_apps(apps))
    when = rated["last_updated"].map(to_datetime)
    ok = when.notna()
    if not ok.any():
        return {"monthly_ratings": [], "trend": trend_analysis([])}

    frame = pd.DataFrame({
        "month": [d.strftime("%Y-%m") for d in when[ok]],
        "rating": rated.loc[ok, "rating"].astype(float).to_numpy(),
    })
    monthly = (frame.groupby("month")
                    .agg(avg_rating=("rating", "mean"), apps=("rating", "size"))
                    .reset_index()
                    .sort_values("month"))
    series = [
        {"date": f"{m}-01", "value": float(r), "apps": int(n)}
        for m, r, n in zip(monthly["month"], monthly["avg_rating"], monthly["apps"])
    ]
    return {"monthly_ratings": series, "trend": trend_analysis(series)}
