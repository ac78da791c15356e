# etl/build_app_cards.py
import argparse
import logging
from pathlib import Path
import pandas as pd

from etl.common import setup_logger

log = logging.getLogger(__name__)

SENTIMENT_COLUMNS = [
    "review_total",
    "positive_count", "negative_count", "neutral_count",
    "positive_pct", "negative_pct", "neutral_pct",
    "avg_polarity", "avg_subjectivity", "sentiment_score",
]
COUNT_COLUMNS = {"review_total", "positive_count", "negative_count", "neutral_count"}


def _empty_summary() -> dict:
    return {c: (0 if c in COUNT_COLUMNS else 0.0) for c in SENTIMENT_COLUMNS}

def aggregate_sentiment(reviews: pd.DataFrame) -> pd.DataFrame:
    """
    Collapse review rows to one row per app_name:
    counts per label, label percentages, mean polarity/subjectivity.
    sentiment_score is just the mean polarity; there is no richer score.
    """
    if reviews.empty:
        return pd.DataFrame(columns=["app_name"] + SENTIMENT_COLUMNS)

    grp = reviews.groupby("app_name", sort=False)
    agg = grp.agg(
        review_total     = ("sentiment_label", "size"),
        positive_count   = ("is_positive", "sum"),
        negative_count   = ("is_negative", "sum"),
        neutral_count    = ("is_neutral", "sum"),
        avg_polarity     = ("polarity", "mean"),
        avg_subjectivity = ("subjectivity", "mean"),
    ).reset_index()

    for label in ("positive", "negative", "neutral"):
        agg[f"{label}_pct"] = agg[f"{label}_count"] / agg["review_total"] * 100
    agg["avg_polarity"] = agg["avg_polarity"].fillna(0.0)
    agg["avg_subjectivity"] = agg["avg_subjectivity"].fillna(0.0)
    agg["sentiment_score"] = agg["avg_polarity"]
    return agg[["app_name"] + SENTIMENT_COLUMNS]

def merge_sentiment(apps: pd.DataFrame, reviews: pd.DataFrame) -> pd.DataFrame:
    """Left-merge per-app sentiment onto apps; apps without reviews get a zero summary."""
    base = apps.drop(columns=[c for c in SENTIMENT_COLUMNS if c in apps.columns])
    sent = aggregate_sentiment(reviews).rename(columns={"app_name": "name"})
    out = base.merge(sent, on="name", how="left")

    for c, v in _empty_summary().items():
        out[c] = out[c].fillna(v)
    for c in COUNT_COLUMNS:
        out[c] = out[c].astype("int64")
    for c in SENTIMENT_COLUMNS:
        if c not in COUNT_COLUMNS:
            out[c] = out[c].astype(float)

    matched = int((out["review_total"] > 0).sum())
    log.info(f"merge_sentiment: {matched}/{len(out)} apps have reviews")
    return out

def main():
    ap = argparse.ArgumentParser(description="Build sentiment-enriched app cards for the dashboard.")
    ap.add_argument("--apps", default="data/curated/apps_clean.csv")
    ap.add_argument("--reviews", default="data/curated/reviews_clean.csv")
    ap.add_argument("--out", default="data/curated/app_cards.csv")
    args = ap.parse_args()
    setup_logger("etl")

    apps_p, reviews_p = Path(args.apps), Path(args.reviews)
    if not apps_p.exists():
        raise SystemExit(f"[app-cards] {apps_p} missing (run etl.clean_apps first)")
    apps = pd.read_csv(apps_p)
    reviews = pd.read_csv(reviews_p) if reviews_p.exists() else pd.DataFrame()
    if reviews.empty:
        print("[app-cards] no cleaned reviews; every app gets a zero sentiment summary")

    cards = merge_sentiment(apps, reviews)

    outp = Path(args.out)
    outp.parent.mkdir(parents=True, exist_ok=True)
    cards.to_csv(outp, index=False)
    print(f"[app-cards] wrote -> {outp}")

if __name__ == "__main__":
    main()
