# analytics/filters.py
import logging
from typing import Any, Mapping, Optional

import pandas as pd

from analytics.aggregate import ensure_columns
from etl.clean_apps import APP_COLUMNS

log = logging.getLogger(__name__)

# criteria key -> app column; min_rating is handled separately
EXACT_MATCH = {
    "category": "category",
    "type": "type",
    "content_rating": "content_rating",
    "is_paid": "is_paid",
}
ALIASES = {
    "minRating": "min_rating",
    "contentRating": "content_rating",
    "isPaid": "is_paid",
}
KNOWN_KEYS = set(EXACT_MATCH) | {"min_rating"}


def normalize_criteria(criteria: Optional[Mapping[str, Any]]) -> dict:
    """Resolve aliases and drop None values. Unknown keys are logged and dropped."""
    out = {}
    for key, value in (criteria or {}).items():
        key = ALIASES.get(key, key)
        if key not in KNOWN_KEYS:
            log.debug(f"filter_apps: ignoring unknown criterion {key!r}")
            continue
        if value is None:
            continue
        out[key] = value
    return out

def filter_apps(apps: pd.DataFrame, criteria: Optional[Mapping[str, Any]] = None) -> pd.DataFrame:
    """
    AND of every present criterion: exact match on category / type /
    content_rating / is_paid, inclusive lower bound on rating. A min_rating
    of 0 imposes no constraint; any positive bound excludes unrated apps.
    Returns a new frame.
    """
    crit = normalize_criteria(criteria)
    apps = ensure_columns(apps, APP_COLUMNS)
    mask = pd.Series(True, index=apps.index)

    for key, col in EXACT_MATCH.items():
        if key not in crit:
            continue
        if key == "is_paid":
            mask &= apps[col].fillna(False).astype(bool) == bool(crit[key])
        else:
            mask &= apps[col] == crit[key]

    if float(crit.get("min_rating") or 0) > 0:
        mask &= pd.to_numeric(apps["rating"], errors="coerce") >= float(crit["min_rating"])

    out = apps[mask].reset_index(drop=True)
    if crit:
        log.info(f"filter_apps {crit}: {len(apps)} -> {len(out)} apps")
    return out
