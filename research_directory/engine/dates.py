"""Date parsing shared by the filter and sort engines."""

from datetime import datetime, timezone
from typing import Any, Optional

from ..data.models import normalize_null


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse an export date string into an aware datetime.

    Accepts ``YYYY-MM-DD`` and ``YYYY-MM-DD HH:MM:SS`` forms with or without a
    UTC offset; values without an offset are read as UTC.

    Returns:
        The datetime, or None when the value is missing or unparseable.
    """
    value = normalize_null(value)
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip().replace(" ", "T", 1)
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def timestamp(value: Any) -> Optional[float]:
    parsed = parse_date(value)
    return parsed.timestamp() if parsed else None
