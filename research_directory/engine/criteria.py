"""Immutable filter criteria passed through the query pipeline."""

from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, Optional

from .citations import ALL_TIME_YEAR


def _as_set(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    if not values:
        return frozenset()
    if isinstance(values, str):
        return frozenset([values])
    return frozenset(v for v in values if v)


@dataclass(frozen=True)
class ExpertCriteria:
    """Filters for the expert list. Empty sets and zero thresholds mean no filter."""
    search: str = ""
    colleges: FrozenSet[str] = field(default_factory=frozenset)
    degrees: FrozenSet[str] = field(default_factory=frozenset)
    departments: FrozenSet[str] = field(default_factory=frozenset)
    min_citations: int = 0
    recency_year: int = ALL_TIME_YEAR

    def __post_init__(self):
        object.__setattr__(self, "colleges", _as_set(self.colleges))
        object.__setattr__(self, "degrees", _as_set(self.degrees))
        object.__setattr__(self, "departments", _as_set(self.departments))


@dataclass(frozen=True)
class PublicationCriteria:
    """Filters for the publications on one expert profile."""
    search: str = ""
    min_citations: int = 0
    recency_year: int = ALL_TIME_YEAR
    start_year: Optional[int] = None
    end_year: Optional[int] = None


@dataclass(frozen=True)
class OpportunityCriteria:
    """User-selectable opportunity filters. The open/closed check is not optional."""
    search: str = ""
    funding_min: Optional[float] = None
    funding_max: Optional[float] = None
    agency_id: Optional[str] = None


@dataclass(frozen=True)
class FundingBucket:
    label: str
    min: Optional[float] = None
    max: Optional[float] = None


FUNDING_BUCKETS = (
    FundingBucket("Any amount"),
    FundingBucket("Under $100K", None, 99999),
    FundingBucket("$100K - $1M", 100000, 999999),
    FundingBucket("$1M - $10M", 1000000, 9999999),
    FundingBucket("Over $10M", 10000000, None),
)


def with_bucket(criteria: OpportunityCriteria, bucket: FundingBucket) -> OpportunityCriteria:
    return replace(criteria, funding_min=bucket.min, funding_max=bucket.max)
