"""Combining lightweight list records with their detail records."""

import logging
from typing import Dict, Generic, Iterable, Mapping, Optional, TypeVar, Union

from pydantic import BaseModel

from ..data.models import to_identifier

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)
DetailT = TypeVar("DetailT", bound=BaseModel)


def merge_records(base: RecordT, detail: Optional[BaseModel]) -> RecordT:
    """
    Overlay a detail record onto a list record.

    Every field the detail document actually carried replaces the list
    value, explicit nulls included. Fields the detail never mentioned, and
    fields the list record's type has no slot for, leave the list record
    untouched.

    Args:
        base: The list record
        detail: The detail record, or None when no detail exists

    Returns:
        A new record of the list record's type. Neither input is modified.
    """
    if detail is None:
        return base.model_copy()

    known = type(base).model_fields
    update = {
        name: getattr(detail, name)
        for name in detail.model_fields_set
        if name in known
    }
    return base.model_copy(update=update)


class DetailIndex(Generic[DetailT]):
    """Lookup of detail records by a join key normalized to ``str``."""

    def __init__(self, details: Optional[Mapping[str, DetailT]] = None):
        self._by_id: Dict[str, DetailT] = dict(details or {})

    @classmethod
    def from_records(cls, details: Iterable[DetailT], key: str) -> "DetailIndex[DetailT]":
        """Index detail records by one of their own fields."""
        by_id: Dict[str, DetailT] = {}
        for detail in details:
            identifier = to_identifier(getattr(detail, key, None))
            if identifier is None:
                logger.warning(f"Skipping detail record without {key}")
                continue
            by_id[identifier] = detail
        return cls(by_id)

    def get(self, identifier: Union[str, int, None]) -> Optional[DetailT]:
        key = to_identifier(identifier)
        if key is None:
            return None
        return self._by_id.get(key)

    def merged(self, base: RecordT, key: str) -> RecordT:
        """Merge ``base`` with the detail sharing its ``key`` field."""
        return merge_records(base, self.get(getattr(base, key, None)))

    def __contains__(self, identifier: object) -> bool:
        return self.get(identifier) is not None  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._by_id)
