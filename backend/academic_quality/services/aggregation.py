"""
Aggregation Service - turns feedback rows into chart-ready summaries.

All functions here are pure: the same collection of rows always yields
the same result regardless of row order, and nothing is persisted.

Rating bands (closed-open, adjacent):
    Excellent  [4.5, 5]
    Good       [3.5, 4.5)
    Average    [2.5, 3.5)
    Poor       [1, 2.5)
"""

import math

from academic_quality.config import RATING_CATEGORIES

# (band name, chart label, inclusive lower bound), highest band first
RATING_BANDS = [
    ("Excellent", "Excellent (4.5-5)", 4.5),
    ("Good", "Good (3.5-4.4)", 3.5),
    ("Average", "Average (2.5-3.4)", 2.5),
    ("Poor", "Poor (1-2.4)", float("-inf")),
]


def _value(row, field):
    """Read a field from an ORM row or a plain mapping."""
    if isinstance(row, dict):
        return row[field]
    return getattr(row, field)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (4.5 -> 5, 2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def overall_rating(ratings) -> int:
    """
    Rounded mean of the ratings that have been set.

    Unset ratings (0 or None) are ignored. Returns 0 when nothing is set.
    """
    chosen = [r for r in ratings if r]
    if not chosen:
        return 0
    return round_half_up(sum(chosen) / len(chosen))


def category_averages(rows) -> list:
    """
    Per-category mean across all rows, rounded to two decimals.

    Returns an empty list for an empty collection so charts can render
    their empty state.
    """
    rows = list(rows)
    if not rows:
        return []

    count = len(rows)
    return [
        {"name": label, "value": round(sum(_value(r, field) for r in rows) / count, 2)}
        for field, label in RATING_CATEGORIES
    ]


def rating_band(rating: float) -> str:
    """Name of the band a single overall rating falls into."""
    for name, _label, lower in RATING_BANDS:
        if rating >= lower:
            return name
    return RATING_BANDS[-1][0]


def rating_distribution(rows) -> list:
    """
    Count rows per rating band; bands with no rows are omitted.

    The counts of the returned bands always sum to the number of rows.
    """
    counts = {name: 0 for name, _label, _lower in RATING_BANDS}
    for row in rows:
        counts[rating_band(_value(row, "overall_rating"))] += 1

    return [
        {"name": label, "band": name, "value": counts[name]}
        for name, label, _lower in RATING_BANDS
        if counts[name] > 0
    ]


def average_overall(rows) -> float:
    """Mean overall rating rounded to two decimals, 0 for an empty collection."""
    ratings = [_value(r, "overall_rating") for r in rows]
    if not ratings:
        return 0
    return round(sum(ratings) / len(ratings), 2)


def summarize(rows) -> dict:
    """Bundle every derived view for one filtered collection."""
    rows = list(rows)
    return {
        "total": len(rows),
        "average_rating": average_overall(rows),
        "category_averages": category_averages(rows),
        "rating_distribution": rating_distribution(rows),
    }
