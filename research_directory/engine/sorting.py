"""
Sort engine for directory records.

All sorts return a new list, are stable for ties, and put records with a
missing or unparseable date at the end regardless of direction.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pyuca import Collator

from .citations import ALL_TIME_YEAR, citations_since
from .dates import timestamp

DEFAULT_SORT = "name_asc"


def display_name(record: Any) -> str:
    """Name for experts, title for publications and opportunities."""
    return getattr(record, "name", None) or getattr(record, "title", None) or ""


# Unicode Collation Algorithm order; accented letters sort with their base letter
_collator = Collator()


def _text_key(text: str) -> Tuple[Tuple[int, ...], str]:
    return _collator.sort_key(text), text


def record_date(record: Any) -> Optional[float]:
    """Publication date, or posting date for opportunities."""
    for attr in ("publication_date", "post_date"):
        value = getattr(record, attr, None)
        if value:
            return timestamp(value)
    return None


def _by_date(
    records: List[Any],
    value_of: Callable[[Any], Optional[float]],
    descending: bool,
) -> List[Any]:
    keyed = [(value_of(record), record) for record in records]
    dated = [pair for pair in keyed if pair[0] is not None]
    undated = [record for value, record in keyed if value is None]
    dated.sort(key=lambda pair: pair[0], reverse=descending)
    return [record for _, record in dated] + undated


def _due(record: Any) -> Optional[float]:
    return timestamp(getattr(record, "due_date", None))


def _posted(record: Any) -> Optional[float]:
    return timestamp(getattr(record, "post_date", None))


def _title(record: Any) -> str:
    return getattr(record, "title", None) or ""


Sorter = Callable[[List[Any], int], List[Any]]

SORTERS: Dict[str, Sorter] = {
    "name_asc": lambda records, year: sorted(records, key=lambda r: _text_key(display_name(r))),
    "title_asc": lambda records, year: sorted(records, key=lambda r: _text_key(_title(r))),
    "title_desc": lambda records, year: sorted(
        records, key=lambda r: _text_key(_title(r)), reverse=True
    ),
    "citations": lambda records, year: sorted(records, key=lambda r: -citations_since(r, year)),
    "year_desc": lambda records, year: _by_date(records, record_date, descending=True),
    "year_asc": lambda records, year: _by_date(records, record_date, descending=False),
    "due_asc": lambda records, year: _by_date(records, _due, descending=False),
    "due_desc": lambda records, year: _by_date(records, _due, descending=True),
    "posted_desc": lambda records, year: _by_date(records, _posted, descending=True),
    "posted_asc": lambda records, year: _by_date(records, _posted, descending=False),
    "publications": lambda records, year: sorted(
        records, key=lambda r: -(getattr(r, "publication_count", 0) or 0)
    ),
    "keywords": lambda records, year: sorted(
        records, key=lambda r: -(getattr(r, "keyword_count", 0) or 0)
    ),
}


def sort_records(
    records: Iterable[Any],
    sort_key: Optional[str],
    recency_year: int = ALL_TIME_YEAR,
) -> List[Any]:
    """
    Order records by one of the SORTERS keys.

    Args:
        records: Experts, publications or opportunities
        sort_key: A SORTERS key; unknown or empty keys fall back to name_asc
        recency_year: Citation window used by the ``citations`` key

    Returns:
        A new, sorted list
    """
    sorter = SORTERS.get(sort_key or DEFAULT_SORT, SORTERS[DEFAULT_SORT])
    return sorter(list(records), recency_year)
