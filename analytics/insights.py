# analytics/insights.py
"""
Rule-based insights and recommendations over category aggregates.

Deterministic: the same category stats, apps and reviews always give the
same ordered lists. All thresholds are the constants below.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Sequence

import pandas as pd

from analytics.aggregate import ensure_columns
from analytics.stats import safe_pct
from etl.clean_apps import APP_COLUMNS, REVIEW_COLUMNS

log = logging.getLogger(__name__)

EXCELLENT_RATING = 4.5
POPULAR_INSTALLS = 1_000_000
TOP_CATEGORY_RATING_FLOOR = 4.0
OPPORTUNITY_RATING_CEILING = 3.5
MAX_OPPORTUNITIES = 3


def _rated_categories(category_stats: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # a category with no rated apps has avg_rating 0, which is "unknown", not "bad"
    return [c for c in category_stats if c.get("rating_stats", {}).get("count", 0) > 0]

def _insights(category_stats, apps: pd.DataFrame, reviews: pd.DataFrame) -> List[Dict[str, Any]]:
    out = []
    total = len(apps)

    if category_stats and total:
        top = category_stats[0]
        share = safe_pct(top["app_count"], total)
        out.append({
            "type": "category",
            "title": "Dominant Category",
            "description": f"{top['category']} leads with {top['app_count']} apps ({share:.1f}% market share)",
            "metric": top["app_count"],
        })

    ratings = pd.to_numeric(apps["rating"], errors="coerce")
    rated = int((ratings > 0).sum())
    excellent = safe_pct(int((ratings >= EXCELLENT_RATING).sum()), rated)
    out.append({
        "type": "rating",
        "title": "Quality Distribution",
        "description": f"{excellent:.1f}% of rated apps have excellent ratings ({EXCELLENT_RATING}+)",
        "metric": excellent,
    })

    popular = safe_pct(int((apps["installs"].fillna(0) >= POPULAR_INSTALLS).sum()), total)
    out.append({
        "type": "installs",
        "title": "Popular Apps",
        "description": f"{popular:.1f}% of apps have achieved 1M+ installs",
        "metric": popular,
    })

    if len(reviews):
        positive = safe_pct(int(reviews["is_positive"].fillna(False).astype(bool).sum()), len(reviews))
        out.append({
            "type": "sentiment",
            "title": "User Sentiment",
            "description": f"{positive:.1f}% of reviews express positive sentiment",
            "metric": positive,
        })
    return out

def _recommendations(category_stats) -> List[Dict[str, Any]]:
    out = []
    rated = _rated_categories(category_stats)

    top = category_stats[0] if category_stats else None
    if top is not None and top.get("rating_stats", {}).get("count", 0) > 0:
        if top["avg_rating"] < TOP_CATEGORY_RATING_FLOOR:
            out.append({
                "category": top["category"],
                "type": "quality",
                "title": "Improve App Quality",
                "description": f"Focus on improving {top['category']} apps quality (current avg: {top['avg_rating']:.2f})",
                "metric": top["avg_rating"],
            })

    weak = [c for c in rated if c["avg_rating"] < OPPORTUNITY_RATING_CEILING][:MAX_OPPORTUNITIES]
    if weak:
        names = ", ".join(c["category"] for c in weak)
        out.append({
            "type": "opportunity",
            "title": "Market Opportunities",
            "description": f"Consider entering or improving apps in: {names}",
            "metric": len(weak),
        })
    return out

def generate_insights(category_stats: Sequence[Dict[str, Any]],
                      apps: pd.DataFrame,
                      reviews: pd.DataFrame) -> Dict[str, List[Dict[str, Any]]]:
    """
    category_stats is the output of aggregate.category_performance (sorted by
    app count), so its first entry is the dominant category.
    """
    apps = ensure_columns(apps, APP_COLUMNS)
    reviews = ensure_columns(reviews, REVIEW_COLUMNS)
    category_stats = list(category_stats or [])

    insights = _insights(category_stats, apps, reviews)
    recommendations = _recommendations(category_stats)
    log.debug(f"generate_insights: {len(insights)} insights, {len(recommendations)} recommendations")
    return {"insights": insights, "recommendations": recommendations}
