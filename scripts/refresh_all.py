# scripts/refresh_all.py
from __future__ import annotations
import argparse
import json
from pathlib import Path

from tqdm import tqdm

from analytics.report import PIPELINE_STAGES, AnalyticsError, run_pipeline
from etl.common import setup_logger
from etl.load_data import SOURCES, DataLoadError, load_all

PROJECT_ROOT = Path(__file__).resolve().parents[1]  # repo root
DATA_DIR     = PROJECT_ROOT / "data"
CURATED_DIR  = DATA_DIR / "curated"

# Canonical file locations
REPORT_JSON    = CURATED_DIR / "report.json"
APP_CARDS_CSV  = CURATED_DIR / "app_cards.csv"


def build_criteria(args) -> dict:
    crit = {
        "category": args.category,
        "min_rating": args.min_rating,
        "type": args.type,
        "content_rating": args.content_rating,
        "is_paid": args.is_paid,
    }
    return {k: v for k, v in crit.items() if v is not None}

def report_payload(result: dict, loaded_at: str) -> dict:
    """Pipeline result minus the frames: those go to CSV."""
    return {
        "loaded_at": loaded_at,
        "stats": result["stats"],
        "data_quality": result["data_quality"],
        "analytics": result["analytics"],
        "chart_data": result["chart_data"],
    }

def write_json(payload: dict, out: Path) -> None:
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False, default=str)


def main(argv=None):
    ap = argparse.ArgumentParser(description="Load Play Store exports, clean them and write the analytics report.")
    ap.add_argument("--apps", default=SOURCES["apps"]["path"], help="apps CSV")
    ap.add_argument("--reviews", default=SOURCES["reviews"]["path"], help="user reviews CSV")
    ap.add_argument("--out", default=str(REPORT_JSON), help="report JSON path")
    ap.add_argument("--cards-out", default=str(APP_CARDS_CSV),
                    help="cleaned + sentiment-enriched apps CSV ('' to skip)")

    f = ap.add_argument_group("filters")
    f.add_argument("--category", default=None)
    f.add_argument("--min-rating", type=float, default=None)
    f.add_argument("--type", default=None, help="Free / Paid (raw Type column)")
    f.add_argument("--content-rating", default=None)
    paid = f.add_mutually_exclusive_group()
    paid.add_argument("--paid", dest="is_paid", action="store_const", const=True)
    paid.add_argument("--free", dest="is_paid", action="store_const", const=False)

    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = ap.parse_args(argv)

    setup_logger("etl", args.log_level)
    log = setup_logger("analytics", args.log_level)

    try:
        loaded = load_all(args.apps, args.reviews)
    except DataLoadError as e:
        raise SystemExit(f"[refresh] load failed: {e}")

    criteria = build_criteria(args)
    if criteria:
        log.info(f"filters: {criteria}")

    with tqdm(total=len(PIPELINE_STAGES), desc="Pipeline", unit="stage") as bar:
        def on_stage(stage):
            bar.set_postfix_str(stage)
            bar.update(1)
        try:
            result = run_pipeline(loaded["apps"], loaded["reviews"], criteria, on_stage=on_stage)
        except AnalyticsError as e:
            raise SystemExit(f"[refresh] {e}")

    out = Path(args.out)
    write_json(report_payload(result, loaded["loaded_at"]), out)
    print(f"[refresh] wrote -> {out}")

    if args.cards_out:
        cards = Path(args.cards_out)
        cards.parent.mkdir(parents=True, exist_ok=True)
        result["apps"].to_csv(cards, index=False)
        print(f"[refresh] wrote -> {cards}")

    s = result["stats"]
    print(f"[refresh] apps={s['total_apps']} (after filters: {s['filtered_apps']}) "
          f"reviews={s['total_reviews']} duplicates_removed={s['duplicates_removed']}")
    return 0

if __name__ == "__main__":
    main()
