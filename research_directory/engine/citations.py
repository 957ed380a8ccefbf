"""Windowed citation counts for experts and publications."""

from typing import Any

# Cutoff years at or below this value mean "all time" (lifetime total)
ALL_TIME_YEAR = 1999


def citations_since(record: Any, cutoff_year: int) -> int:
    """
    Count the citations a record accrued from ``cutoff_year`` onwards.

    Args:
        record: Any record with ``total_citations`` and ``citations_per_year``
            (Expert, Publication, or a merge of either)
        cutoff_year: First year that counts; ALL_TIME_YEAR or lower selects
            the lifetime total

    Returns:
        The lifetime total when no window is requested, otherwise the sum of
        the yearly breakdown for every year >= cutoff_year (0 when the record
        has no breakdown).
    """
    if cutoff_year is None or cutoff_year <= ALL_TIME_YEAR:
        return getattr(record, "total_citations", 0) or 0

    breakdown = getattr(record, "citations_per_year", None)
    if not breakdown:
        return 0

    return sum(count or 0 for year, count in breakdown.items() if year >= cutoff_year)
