# etl/load_data.py
"""
Load the Play Store app + review exports and check their column contract.

The two files are read concurrently (one worker thread each) and awaited
together; if either one fails the whole load fails. Everything is read as
strings: typing happens later, in etl.clean_apps.
"""
from __future__ import annotations
import asyncio
import copy
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Sequence

import pandas as pd
import yaml

from etl.normalize_apps import is_null_token

log = logging.getLogger(__name__)

SOURCES_CFG = Path(__file__).parent / "sources.yml"
DEFAULT_SOURCES = {
    "apps": {
        "path": "data/input/googleplaystore.csv",
        "required_columns": ["App", "Category", "Rating", "Reviews", "Installs"],
    },
    "reviews": {
        "path": "data/input/googleplaystore_user_reviews.csv",
        "required_columns": ["App", "Sentiment", "Sentiment_Polarity"],
    },
    "quality": {
        "critical_fields": ["App", "Category"],
    },
}


class DataLoadError(Exception):
    """A source file is missing, unreadable, or lacks required columns."""


def _load_sources_cfg(path: Path = SOURCES_CFG) -> dict:
    cfg = copy.deepcopy(DEFAULT_SOURCES)
    if not path.exists():
        return cfg
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError:
        log.warning(f"{path.name} exists but could not be parsed; using defaults")
        return cfg
    for section, values in loaded.items():
        if isinstance(values, dict):
            cfg.setdefault(section, {}).update(values)
    return cfg

SOURCES = _load_sources_cfg()


# ---------- readers ----------
def load_csv(path) -> pd.DataFrame:
    p = Path(path)
    if not p.exists():
        raise DataLoadError(f"Input file not found: {p}")
    try:
        df = pd.read_csv(p, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError, OSError) as e:
        raise DataLoadError(f"Failed to read {p}: {e}") from e
    df.columns = df.columns.str.strip()
    log.info(f"loaded {len(df)} rows from {p}")
    return df

def check_columns(df: pd.DataFrame, required: Iterable[str], source: str) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise DataLoadError(f"Missing required columns: {', '.join(missing)} ({source})")

def load_apps(path=None) -> pd.DataFrame:
    cfg = SOURCES["apps"]
    df = load_csv(path or cfg["path"])
    check_columns(df, cfg["required_columns"], "apps")
    return df

def load_reviews(path=None) -> pd.DataFrame:
    cfg = SOURCES["reviews"]
    df = load_csv(path or cfg["path"])
    check_columns(df, cfg["required_columns"], "reviews")
    return df

async def load_all_async(apps_path=None, reviews_path=None) -> dict:
    apps, reviews = await asyncio.gather(
        asyncio.to_thread(load_apps, apps_path),
        asyncio.to_thread(load_reviews, reviews_path),
    )
    return {
        "apps": apps,
        "reviews": reviews,
        "loaded_at": datetime.now(timezone.utc).isoformat(),
    }

def load_all(apps_path=None, reviews_path=None) -> dict:
    return asyncio.run(load_all_async(apps_path, reviews_path))


# ---------- quality report ----------
def validate_data_quality(
    rows,
    critical_fields: Optional[Sequence[str]] = None,
    key: Optional[str] = "App",
) -> dict:
    """
    Quick integrity report over raw rows: missing critical fields and
    duplicate keys. Pass key=None to skip the duplicate check (reviews).
    """
    df = rows if isinstance(rows, pd.DataFrame) else pd.DataFrame(list(rows or []))
    if df.empty:
        return {"is_valid": False, "total_rows": 0, "unique_apps": 0,
                "duplicates": 0, "issues": ["Data is empty"]}

    if critical_fields is None:
        critical_fields = SOURCES["quality"]["critical_fields"]
    total = len(df)
    issues = []

    for field in critical_fields:
        if field in df.columns:
            missing = int(df[field].map(is_null_token).sum())
        else:
            missing = total
        if missing:
            issues.append(f"{field}: {missing} missing values ({missing / total * 100:.1f}%)")

    unique_apps, duplicates = 0, 0
    if key and key in df.columns:
        names = df[key][~df[key].map(is_null_token).astype(bool)]
        unique_apps = int(names.nunique())
        duplicates = int(len(names) - unique_apps)
        if duplicates:
            issues.append(f"Found {duplicates} duplicate app entries")

    return {
        "is_valid": not issues,
        "total_rows": total,
        "unique_apps": unique_apps,
        "duplicates": duplicates,
        "issues": issues,
    }
