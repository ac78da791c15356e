# analytics/report.py
"""
Entry points for the presentation layer.

generate_analytics() builds the full analytics result for one app/review set;
run_pipeline() goes from raw CSV rows to that result (clean, dedupe, merge
sentiment, filter, analyse). Nothing is cached: every call recomputes.
"""
from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

import pandas as pd

from analytics.aggregate import (
    category_analytics, category_performance, correlation_analytics,
    ensure_columns, overview, rated_apps, rating_analysis, rating_histogram,
    records, sentiment_analysis, update_trend,
)
from analytics.filters import filter_apps
from analytics.insights import generate_insights
from analytics.stats import frequency_analysis
from etl.build_app_cards import merge_sentiment
from etl.clean_apps import (
    APP_COLUMNS, clean_apps, clean_reviews, deduplicate_apps, to_frame,
)
from etl.load_data import validate_data_quality
from etl.normalize_apps import INSTALL_BUCKET_ORDER, UNKNOWN_BUCKET

log = logging.getLogger(__name__)

CHART_TOP_N = 10
REVIEW_CRITICAL_FIELDS = ["App", "Sentiment"]

PIPELINE_STAGES = (
    "validate", "clean", "dedupe", "merge", "filter", "analytics", "charts",
)


class AnalyticsError(Exception):
    """Raised when any part of analytics generation fails; wraps the cause."""


def generate_analytics(apps: pd.DataFrame, reviews: pd.DataFrame, *,
                       now: Optional[datetime] = None) -> Dict[str, Any]:
    try:
        categories = category_analytics(apps)
        result = {
            "overview": overview(apps),
            "categories": categories,
            "ratings": rating_analysis(apps),
            "sentiment": sentiment_analysis(reviews),
            "correlations": correlation_analytics(apps),
            "insights": generate_insights(categories["category_performance"], apps, reviews),
            "trends": {"rating_by_update_month": update_trend(apps)},
        }
    except Exception as e:
        log.error(f"analytics generation failed: {e}")
        raise AnalyticsError(f"Analytics generation failed: {e}") from e

    result["generated_at"] = (now or datetime.now(timezone.utc)).isoformat()
    return result


def generate_chart_data(apps: pd.DataFrame) -> Dict[str, Any]:
    """Chart-ready series (plain lists of dicts); rendering is up to the caller."""
    apps = ensure_columns(apps, APP_COLUMNS)

    category_distribution = [
        {"name": f["value"], "value": f["count"], "percentage": f["percentage"]}
        for f in frequency_analysis(apps["category"], CHART_TOP_N)
    ]

    rating_distribution = [
        {"range": label, "count": n}
        for label, n in rating_histogram(apps["rating"]).items()
    ]

    bucket_counts = apps["installs_category"].value_counts()
    order = list(INSTALL_BUCKET_ORDER)
    if UNKNOWN_BUCKET in bucket_counts.index:
        order.append(UNKNOWN_BUCKET)
    install_distribution = [
        {"category": b, "count": int(bucket_counts.get(b, 0))} for b in order
    ]

    priced = rated_apps(apps)
    priced = priced[pd.to_numeric(priced["price"], errors="coerce") >= 0]
    price_vs_rating = records(priced, ["name", "category", "price", "rating", "installs"])

    performance = [
        {k: cat[k] for k in ("category", "avg_rating", "app_count", "total_installs", "avg_installs")}
        for cat in category_performance(apps)[:CHART_TOP_N]
    ]

    return {
        "category_distribution": category_distribution,
        "rating_distribution": rating_distribution,
        "install_distribution": install_distribution,
        "price_vs_rating": price_vs_rating,
        "category_performance": performance,
    }


def run_pipeline(raw_apps, raw_reviews,
                 criteria: Optional[Mapping[str, Any]] = None,
                 on_stage: Optional[Callable[[str], None]] = None) -> Dict[str, Any]:
    """
    Raw rows -> cleaned, deduplicated, sentiment-enriched and filtered frames
    plus analytics and chart data. `on_stage` is called with each stage name
    in PIPELINE_STAGES once that stage finishes.
    """
    def done(stage):
        if on_stage is not None:
            on_stage(stage)

    raw_apps = to_frame(raw_apps)
    raw_reviews = to_frame(raw_reviews)

    quality = {
        "apps": validate_data_quality(raw_apps, key="App"),
        "reviews": validate_data_quality(raw_reviews, REVIEW_CRITICAL_FIELDS, key=None),
    }
    for source, q in quality.items():
        for issue in q["issues"]:
            log.warning(f"data quality ({source}): {issue}")
    done("validate")

    cleaned = clean_apps(raw_apps)
    reviews = clean_reviews(raw_reviews)
    done("clean")

    apps = deduplicate_apps(cleaned)
    done("dedupe")

    apps = merge_sentiment(apps, reviews)
    done("merge")

    filtered = filter_apps(apps, criteria)
    done("filter")

    analytics = generate_analytics(filtered, reviews)
    done("analytics")

    chart_data = generate_chart_data(filtered)
    done("charts")

    return {
        "apps": filtered,
        "reviews": reviews,
        "stats": {
            "total_apps": int(len(apps)),
            "filtered_apps": int(len(filtered)),
            "total_reviews": int(len(reviews)),
            "duplicates_removed": int(len(cleaned) - len(apps)),
        },
        "data_quality": quality,
        "analytics": analytics,
        "chart_data": chart_data,
    }
