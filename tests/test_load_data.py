import pandas as pd
import pytest

from etl import load_data
from etl.load_data import (
    DataLoadError, _load_sources_cfg, load_all, load_apps, load_csv,
    load_reviews, validate_data_quality,
)


APPS_CSV = (
    " App ,Category,Rating,Reviews,Size,Installs,Type,Price\n"
    "Alpha,GAME,4.5,10,1M,\"1,000+\",Free,0\n"
    "Beta,TOOLS,NaN,3,Varies with device,10+,Paid,$1.99\n"
)
REVIEWS_CSV = (
    "App,Translated_Review,Sentiment,Sentiment_Polarity,Sentiment_Subjectivity\n"
    "Alpha,Great,Positive,0.8,0.7\n"
    "Alpha,nan,nan,nan,nan\n"
)


@pytest.fixture
def csv_files(tmp_path):
    apps = tmp_path / "apps.csv"
    reviews = tmp_path / "reviews.csv"
    apps.write_text(APPS_CSV, encoding="utf-8")
    reviews.write_text(REVIEWS_CSV, encoding="utf-8")
    return apps, reviews


def test_load_csv_keeps_raw_strings(csv_files):
    df = load_csv(csv_files[0])
    assert list(df.columns)[0] == "App"
    assert df.loc[1, "Rating"] == "NaN"
    assert df.loc[0, "Installs"] == "1,000+"

def test_load_csv_missing_file(tmp_path):
    with pytest.raises(DataLoadError, match="not found"):
        load_csv(tmp_path / "nope.csv")

def test_load_apps_checks_columns(tmp_path):
    p = tmp_path / "bad.csv"
    p.write_text("App,Category\nA,GAME\n", encoding="utf-8")
    with pytest.raises(DataLoadError, match="Rating, Reviews, Installs"):
        load_apps(p)

def test_load_reviews(csv_files):
    assert len(load_reviews(csv_files[1])) == 2

def test_load_all_reads_both(csv_files):
    out = load_all(*csv_files)
    assert len(out["apps"]) == 2
    assert len(out["reviews"]) == 2
    assert out["loaded_at"]

def test_load_all_fails_if_either_fails(csv_files, tmp_path):
    with pytest.raises(DataLoadError):
        load_all(csv_files[0], tmp_path / "missing.csv")

def test_sources_cfg_falls_back_on_bad_yaml(tmp_path):
    bad = tmp_path / "sources.yml"
    bad.write_text("apps: [unclosed\n", encoding="utf-8")
    assert _load_sources_cfg(bad) == load_data.DEFAULT_SOURCES

def test_sources_cfg_overrides(tmp_path):
    cfg = tmp_path / "sources.yml"
    cfg.write_text("apps:\n  path: elsewhere.csv\n", encoding="utf-8")
    loaded = _load_sources_cfg(cfg)
    assert loaded["apps"]["path"] == "elsewhere.csv"
    assert loaded["apps"]["required_columns"] == load_data.DEFAULT_SOURCES["apps"]["required_columns"]
    assert load_data.DEFAULT_SOURCES["apps"]["path"] != "elsewhere.csv"

def test_validate_data_quality():
    rows = [
        {"App": "A", "Category": "GAME"},
        {"App": "A", "Category": "GAME"},
        {"App": "B", "Category": ""},
        {"App": "", "Category": "TOOLS"},
    ]
    q = validate_data_quality(rows)
    assert q["total_rows"] == 4
    assert q["unique_apps"] == 2
    assert q["duplicates"] == 1
    assert not q["is_valid"]
    assert "App: 1 missing values (25.0%)" in q["issues"]
    assert "Category: 1 missing values (25.0%)" in q["issues"]
    assert "Found 1 duplicate app entries" in q["issues"]

def test_validate_data_quality_clean_and_empty():
    assert validate_data_quality(pd.DataFrame([{"App": "A", "Category": "G"}]))["is_valid"]
    empty = validate_data_quality([])
    assert empty == {"is_valid": False, "total_rows": 0, "unique_apps": 0,
                     "duplicates": 0, "issues": ["Data is empty"]}
