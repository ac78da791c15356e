# etl/clean_apps.py
"""
Turn raw Play Store CSV rows into canonical app / review frames.

Rows missing a critical field (app name, category, sentiment label) are
dropped; every other malformed cell falls back to a neutral value through
the parsers in etl.normalize_apps.
"""
from __future__ import annotations
import argparse
import logging
from pathlib import Path
from typing import Iterable, Mapping, Union

import pandas as pd

from etl.normalize_apps import (
    POLARITY_RANGE, SUBJECTIVITY_RANGE, bounded_float, categorize_installs,
    clean_str, count_to_number, installs_to_number, is_null_token,
    price_to_number, rating_to_number, size_to_bytes,
)
from etl.common import setup_logger
from etl.load_data import SOURCES, load_apps, load_reviews

log = logging.getLogger(__name__)

RawRows = Union[pd.DataFrame, Iterable[Mapping[str, object]]]

POPULAR_INSTALLS = 1_000_000

# raw column -> canonical passthrough column
APP_PASSTHROUGH = {
    "Type": "type",
    "Content Rating": "content_rating",
    "Genres": "genres",
    "Last Updated": "last_updated",
    "Current Ver": "current_version",
    "Android Ver": "android_version",
}

APP_COLUMNS = [
    "name", "category", "rating", "review_count",
    "size", "size_bytes", "installs_label", "installs", "installs_category",
    "type", "price_label", "price",
    "content_rating", "genres", "last_updated", "current_version", "android_version",
    "is_paid", "has_rating", "is_popular",
]

REVIEW_COLUMNS = [
    "app_name", "translated_review", "sentiment_label", "polarity", "subjectivity",
    "is_positive", "is_negative", "is_neutral",
]

SENTIMENT_LABELS = ("positive", "negative", "neutral")


def to_frame(rows: RawRows) -> pd.DataFrame:
    if isinstance(rows, pd.DataFrame):
        df = rows.copy()
    else:
        df = pd.DataFrame(list(rows))
    df.columns = [str(c).strip() for c in df.columns]
    return df

def _col(df: pd.DataFrame, name: str) -> pd.Series:
    if name in df.columns:
        return df[name]
    return pd.Series([None] * len(df), index=df.index, dtype=object)

def _present(s: pd.Series) -> pd.Series:
    return ~s.map(is_null_token).astype(bool)


# ---------- apps ----------
def clean_apps(raw_rows: RawRows) -> pd.DataFrame:
    df = to_frame(raw_rows)
    if df.empty:
        return pd.DataFrame(columns=APP_COLUMNS)

    keep = _present(_col(df, "App")) & _present(_col(df, "Category"))
    dropped = int((~keep).sum())
    df = df[keep]

    out = pd.DataFrame(index=df.index)
    out["name"] = _col(df, "App").map(clean_str)
    out["category"] = _col(df, "Category").map(clean_str)
    out["rating"] = pd.to_numeric(_col(df, "Rating").map(rating_to_number), errors="coerce")
    out["review_count"] = _col(df, "Reviews").map(count_to_number).astype("int64")

    out["size"] = _col(df, "Size").map(clean_str)
    out["size_bytes"] = pd.to_numeric(_col(df, "Size").map(size_to_bytes), errors="coerce")

    out["installs_label"] = _col(df, "Installs").map(clean_str)
    out["installs"] = _col(df, "Installs").map(installs_to_number).astype("int64")
    out["installs_category"] = out["installs"].map(categorize_installs)

    out["price_label"] = _col(df, "Price").map(clean_str)
    out["price"] = _col(df, "Price").map(price_to_number).astype(float)

    for raw, canon in APP_PASSTHROUGH.items():
        out[canon] = _col(df, raw).map(clean_str)

    out["is_paid"] = out["price"] > 0
    out["has_rating"] = out["rating"].fillna(0) > 0
    out["is_popular"] = out["installs"] >= POPULAR_INSTALLS

    out = out[APP_COLUMNS].reset_index(drop=True)
    log.info(f"clean_apps: kept={len(out)} dropped={dropped}")
    return out


def deduplicate_apps(apps: pd.DataFrame) -> pd.DataFrame:
    """
    One row per app name: the one with the most reviews. idxmax returns the
    first position reaching the max, so equal review counts keep the
    first-seen row. Groups come out in first-appearance order.
    """
    if apps.empty:
        return apps.copy()
    apps = apps.reset_index(drop=True)
    best = apps.groupby("name", sort=False)["review_count"].idxmax()
    out = apps.loc[best.values].reset_index(drop=True)
    log.info(f"deduplicate_apps: {len(apps)} -> {len(out)} rows")
    return out


# ---------- reviews ----------
def clean_reviews(raw_rows: RawRows) -> pd.DataFrame:
    df = to_frame(raw_rows)
    if df.empty:
        return pd.DataFrame(columns=REVIEW_COLUMNS)

    keep = _present(_col(df, "App")) & _present(_col(df, "Sentiment"))
    dropped = int((~keep).sum())
    df = df[keep]

    out = pd.DataFrame(index=df.index)
    out["app_name"] = _col(df, "App").map(clean_str)
    out["translated_review"] = _col(df, "Translated_Review").map(clean_str)
    out["sentiment_label"] = _col(df, "Sentiment").map(clean_str).str.lower()
    out["polarity"] = _col(df, "Sentiment_Polarity").map(lambda v: bounded_float(v, *POLARITY_RANGE)).astype(float)
    out["subjectivity"] = _col(df, "Sentiment_Subjectivity").map(lambda v: bounded_float(v, *SUBJECTIVITY_RANGE)).astype(float)
    for label in SENTIMENT_LABELS:
        out[f"is_{label}"] = out["sentiment_label"] == label

    out = out[REVIEW_COLUMNS].reset_index(drop=True)
    log.info(f"clean_reviews: kept={len(out)} dropped={dropped}")
    return out


def main(apps_csv, reviews_csv, out_apps, out_reviews):
    apps_raw = load_apps(apps_csv)
    apps = deduplicate_apps(clean_apps(apps_raw))
    Path(out_apps).parent.mkdir(parents=True, exist_ok=True)
    apps.to_csv(out_apps, index=False)
    print(f"[clean_apps] kept={len(apps)} dropped={len(apps_raw) - len(apps)} -> {out_apps}")

    if reviews_csv:
        reviews_raw = load_reviews(reviews_csv)
        reviews = clean_reviews(reviews_raw)
        Path(out_reviews).parent.mkdir(parents=True, exist_ok=True)
        reviews.to_csv(out_reviews, index=False)
        print(f"[clean_reviews] kept={len(reviews)} dropped={len(reviews_raw) - len(reviews)} -> {out_reviews}")

if __name__ == "__main__":
    ap = argparse.ArgumentParser(description="Clean + dedupe Play Store apps and reviews")
    ap.add_argument("--apps", default=SOURCES["apps"]["path"])
    ap.add_argument("--reviews", default=SOURCES["reviews"]["path"])
    ap.add_argument("--out-apps", default="data/curated/apps_clean.csv")
    ap.add_argument("--out-reviews", default="data/curated/reviews_clean.csv")
    args = ap.parse_args()
    setup_logger("etl")
    main(args.apps, args.reviews, args.out_apps, args.out_reviews)
