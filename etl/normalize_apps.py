# etl/normalize_apps.py
"""
Field-level parsers for Play Store app metadata.

Every parser is total: unparseable input yields a safe default
(0, None or the "Unknown" bucket) instead of raising, so a single bad
cell never aborts a batch.
"""
from __future__ import annotations
import math
import re
from typing import NamedTuple, Optional

import pandas as pd

# --- size helpers ---
VARIES_WITH_DEVICE = "varies with device"
SIZE_RX = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmg])b?\s*$", re.I)
SIZE_MULTIPLIERS = {"k": 1024, "m": 1024 ** 2, "g": 1024 ** 3}

# --- pricing helpers ---
PRICE_RX = re.compile(r"^\s*[$£€]?\s?(\d+(?:\.\d+)?)\s*$")
FREE_TOKENS = {"free", "0"}

LEADING_INT_RX = re.compile(r"^\s*(\d+)")
NULL_TOKENS = {"", "nan", "none", "null"}

MIN_RATING, MAX_RATING = 1.0, 5.0
POLARITY_RANGE = (-1.0, 1.0)
SUBJECTIVITY_RANGE = (0.0, 1.0)


class InstallBucket(NamedTuple):
    label: str
    min: float
    max: float  # exclusive


# ordered, half-open, exhaustive over [0, inf)
INSTALL_BUCKETS: tuple[InstallBucket, ...] = (
    InstallBucket("0-1K", 0, 1_000),
    InstallBucket("1K-10K", 1_000, 10_000),
    InstallBucket("10K-100K", 10_000, 100_000),
    InstallBucket("100K-1M", 100_000, 1_000_000),
    InstallBucket("1M-10M", 1_000_000, 10_000_000),
    InstallBucket("10M-100M", 10_000_000, 100_000_000),
    InstallBucket("100M+", 100_000_000, math.inf),
)
INSTALL_BUCKET_ORDER = tuple(b.label for b in INSTALL_BUCKETS)
UNKNOWN_BUCKET = "Unknown"


# ---------- generic helpers ----------
def is_null_token(val) -> bool:
    """True for None/NaN/empty cells and the string sentinels CSV exports leave behind."""
    if val is None:
        return True
    try:
        if pd.isna(val):
            return True
    except (TypeError, ValueError):
        return False
    return isinstance(val, str) and val.strip().lower() in NULL_TOKENS

def clean_str(val) -> Optional[str]:
    if is_null_token(val):
        return None
    return str(val).strip()


# ---------- field parsers ----------
def size_to_bytes(val) -> Optional[float]:
    """Turn '19M' / '8.7m' / '14k' / '1.2G' into bytes; None for 'Varies with device'."""
    s = clean_str(val)
    if s is None or s.lower() == VARIES_WITH_DEVICE:
        return None
    m = SIZE_RX.match(s)
    if m:
        return float(m.group(1)) * SIZE_MULTIPLIERS[m.group(2).lower()]
    try:
        n = float(s)
    except ValueError:
        return None
    return n if math.isfinite(n) and n >= 0 else None

def installs_to_number(val) -> int:
    """Turn '10,000+' into 10000; 0 when nothing numeric is left."""
    s = clean_str(val)
    if s is None:
        return 0
    m = LEADING_INT_RX.match(s.replace(",", "").replace("+", ""))
    return int(m.group(1)) if m else 0

def price_to_number(val) -> float:
    """'$4.99' -> 4.99, 'Free' -> 0.0."""
    s = clean_str(val)
    if s is None or s.lower() in FREE_TOKENS:
        return 0.0
    m = PRICE_RX.match(s)
    return float(m.group(1)) if m else 0.0

def rating_to_number(val) -> Optional[float]:
    """Star rating in [1, 5]; anything else is treated as 'no rating'."""
    s = clean_str(val)
    if s is None:
        return None
    try:
        r = float(s)
    except ValueError:
        return None
    return r if MIN_RATING <= r <= MAX_RATING else None

def bounded_float(val, lo: float, hi: float) -> float:
    """Float in [lo, hi]; 0 when missing, unparseable or out of range."""
    f = float_or_zero(val)
    return f if lo <= f <= hi else 0.0

def count_to_number(val) -> int:
    s = clean_str(val)
    if s is None:
        return 0
    m = LEADING_INT_RX.match(s.replace(",", ""))
    return int(m.group(1)) if m else 0

def float_or_zero(val) -> float:
    s = clean_str(val)
    if s is None:
        return 0.0
    try:
        f = float(s)
    except ValueError:
        return 0.0
    return f if math.isfinite(f) else 0.0

def categorize_installs(n) -> str:
    try:
        n = float(n)
    except (TypeError, ValueError):
        return UNKNOWN_BUCKET
    for b in INSTALL_BUCKETS:
        if b.min <= n < b.max:
            return b.label
    return UNKNOWN_BUCKET
