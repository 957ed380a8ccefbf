"""
Query pipeline and the controllers that drive it.

The pipeline is always filter, then sort. Controllers own two immutable
values: a snapshot of the loaded collections and the current UI state.
Both are replaced wholesale, never edited, and every query reads the
snapshot reference exactly once.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from config.settings import settings
from ..data.models import (
    Agency,
    Expert,
    ExpertDetail,
    Opportunity,
    Publication,
    to_identifier,
)
from .agencies import AgencyHierarchy
from .criteria import (
    FUNDING_BUCKETS,
    ExpertCriteria,
    FundingBucket,
    OpportunityCriteria,
    PublicationCriteria,
    with_bucket,
)
from .filters import filter_experts, filter_open, filter_opportunities, filter_publications, matches_funding
from .merge import DetailIndex, merge_records
from .sorting import sort_records

logger = logging.getLogger(__name__)

SIMILAR_PROFILE_LIMIT = 10


def query_experts(
    experts: Iterable[Expert],
    criteria: ExpertCriteria,
    sort_key: Optional[str] = "name_asc",
) -> List[Expert]:
    filtered = filter_experts(experts, criteria)
    return sort_records(filtered, sort_key, criteria.recency_year)


def query_publications(
    publications: Iterable[Publication],
    criteria: PublicationCriteria,
    sort_key: Optional[str] = "year_desc",
) -> List[Publication]:
    filtered = filter_publications(publications, criteria)
    return sort_records(filtered, sort_key, criteria.recency_year)


def query_opportunities(
    opportunities: Iterable[Opportunity],
    criteria: OpportunityCriteria,
    sort_key: Optional[str] = "due_asc",
    agencies: Optional[AgencyHierarchy] = None,
    now: Optional[datetime] = None,
) -> List[Opportunity]:
    """
    Open opportunities matching ``criteria``, sorted.

    Without an agency hierarchy an agency filter matches that agency only.
    """
    hierarchy = agencies if agencies is not None else AgencyHierarchy()
    scope = hierarchy.scope(criteria.agency_id)
    filtered = filter_opportunities(opportunities, criteria, scope, now)
    return sort_records(filtered, sort_key)


@dataclass(frozen=True)
class Page:
    """The visible slice of a result list."""
    items: Tuple
    total: int
    next_count: int

    @property
    def has_more(self) -> bool:
        return self.next_count > 0


def window(results: Sequence, visible_count: int, page_size: int) -> Page:
    shown = tuple(results[:visible_count])
    next_count = min(page_size, max(0, len(results) - visible_count))
    return Page(items=shown, total=len(results), next_count=next_count)


# ========================
# Opportunities

@dataclass(frozen=True)
class OpportunitySnapshot:
    opportunities: Tuple[Opportunity, ...] = ()
    details: DetailIndex = field(default_factory=DetailIndex)
    agencies: AgencyHierarchy = field(default_factory=AgencyHierarchy)


@dataclass(frozen=True)
class BoardState:
    """Everything the opportunity page lets the user change."""
    criteria: OpportunityCriteria = field(default_factory=OpportunityCriteria)
    sort_key: str = "due_asc"
    selected_opp_id: Optional[str] = None
    page_size: int = settings.page_size
    visible_count: int = settings.page_size

    def _reset(self, **changes) -> "BoardState":
        return replace(self, selected_opp_id=None, visible_count=self.page_size, **changes)

    def with_search(self, text: str) -> "BoardState":
        return self._reset(criteria=replace(self.criteria, search=text or ""))

    def with_funding_bucket(self, bucket: FundingBucket) -> "BoardState":
        return self._reset(criteria=with_bucket(self.criteria, bucket))

    def with_agency(self, agency_id: Optional[str]) -> "BoardState":
        return self._reset(criteria=replace(self.criteria, agency_id=to_identifier(agency_id)))

    def with_sort(self, sort_key: str) -> "BoardState":
        return replace(self, sort_key=sort_key, visible_count=self.page_size)

    def select(self, opp_id: Optional[str]) -> "BoardState":
        return replace(self, selected_opp_id=to_identifier(opp_id))

    def load_more(self) -> "BoardState":
        return replace(self, visible_count=self.visible_count + self.page_size)

    def cleared(self) -> "BoardState":
        return self._reset(criteria=OpportunityCriteria())


@dataclass(frozen=True)
class FundingFacet:
    index: int
    bucket: FundingBucket
    count: int


@dataclass(frozen=True)
class AgencyFacet:
    agency_id: str
    name: str
    parent_id: Optional[str]
    direct_count: int
    total_count: int


class OpportunityBoard:
    """Controller for the funding opportunity page."""

    def __init__(
        self,
        snapshot: Optional[OpportunitySnapshot] = None,
        page_size: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._snapshot = snapshot or OpportunitySnapshot()
        size = page_size or settings.page_size
        self.state = BoardState(page_size=size, visible_count=size)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def snapshot(self) -> OpportunitySnapshot:
        return self._snapshot

    def replace_snapshot(self, snapshot: OpportunitySnapshot) -> None:
        self._snapshot = snapshot

    def apply_agencies(self, agencies: Iterable[Agency]) -> None:
        """Swap in the agency hierarchy once it has loaded."""
        hierarchy = AgencyHierarchy(agencies)
        self._snapshot = replace(self._snapshot, agencies=hierarchy)
        logger.info(f"Applied {len(hierarchy)} agencies")

    # State transitions

    def search(self, text: str) -> None:
        self.state = self.state.with_search(text)

    def choose_funding_bucket(self, index: int) -> None:
        self.state = self.state.with_funding_bucket(FUNDING_BUCKETS[index])

    def choose_agency(self, agency_id: Optional[str]) -> None:
        self.state = self.state.with_agency(agency_id)

    def sort_by(self, sort_key: str) -> None:
        self.state = self.state.with_sort(sort_key)

    def select(self, opp_id: Optional[str]) -> None:
        self.state = self.state.select(opp_id)

    def load_more(self) -> None:
        self.state = self.state.load_more()

    def clear(self) -> None:
        self.state = self.state.cleared()

    # Queries

    def results(self) -> List[Opportunity]:
        snapshot, state = self._snapshot, self.state
        return query_opportunities(
            snapshot.opportunities,
            state.criteria,
            state.sort_key,
            snapshot.agencies,
            self._clock(),
        )

    def visible(self) -> Page:
        state = self.state
        return window(self.results(), state.visible_count, state.page_size)

    def selected(self) -> Optional[Opportunity]:
        """The selected opportunity merged with its detail record."""
        snapshot, opp_id = self._snapshot, self.state.selected_opp_id
        if opp_id is None:
            return None
        base = next((o for o in snapshot.opportunities if o.opp_id == opp_id), None)
        if base is None:
            return None
        return snapshot.details.merged(base, "opp_id")

    def funding_facets(self) -> List[FundingFacet]:
        open_opps = filter_open(self._snapshot.opportunities, self._clock())
        return [
            FundingFacet(
                index=i,
                bucket=bucket,
                count=sum(1 for o in open_opps if matches_funding(o, bucket.min, bucket.max)),
            )
            for i, bucket in enumerate(FUNDING_BUCKETS)
        ]

    def agency_facets(self) -> List[AgencyFacet]:
        """
        Agencies with at least one open opportunity in their subtree.

        Sorted by subtree count, largest first, then by name.
        """
        snapshot = self._snapshot
        hierarchy = snapshot.agencies
        direct: Dict[str, int] = {}
        for opportunity in filter_open(snapshot.opportunities, self._clock()):
            if opportunity.agency_id is not None:
                direct[opportunity.agency_id] = direct.get(opportunity.agency_id, 0) + 1

        agency_ids = set(direct)
        for agency_id in direct:
            parent = hierarchy.parent_of(agency_id)
            seen = {agency_id}
            while parent is not None and parent not in seen:
                agency_ids.add(parent)
                seen.add(parent)
                parent = hierarchy.parent_of(parent)

        facets = [
            AgencyFacet(
                agency_id=agency_id,
                name=hierarchy.name_of(agency_id),
                parent_id=hierarchy.parent_of(agency_id),
                direct_count=direct.get(agency_id, 0),
                total_count=hierarchy.aggregate_count(agency_id, direct),
            )
            for agency_id in agency_ids
        ]
        facets.sort(key=lambda f: (-f.total_count, f.name.casefold(), f.agency_id))
        return facets


# ========================
# Experts

@dataclass(frozen=True)
class ExpertSnapshot:
    experts: Tuple[Expert, ...] = ()
    details: DetailIndex = field(default_factory=DetailIndex)
    similar: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class DirectoryState:
    criteria: ExpertCriteria = field(default_factory=ExpertCriteria)
    sort_key: str = "name_asc"

    def with_criteria(self, **changes) -> "DirectoryState":
        return replace(self, criteria=replace(self.criteria, **changes))

    def with_sort(self, sort_key: str) -> "DirectoryState":
        return replace(self, sort_key=sort_key)

    def cleared(self) -> "DirectoryState":
        return replace(self, criteria=ExpertCriteria())


@dataclass(frozen=True)
class CollegeFacet:
    name: str
    departments: Tuple[str, ...]


class ExpertDirectory:
    """Controller for the expert search page."""

    def __init__(self, snapshot: Optional[ExpertSnapshot] = None):
        self._snapshot = snapshot or ExpertSnapshot()
        self.state = DirectoryState()

    @property
    def snapshot(self) -> ExpertSnapshot:
        return self._snapshot

    def replace_snapshot(self, snapshot: ExpertSnapshot) -> None:
        self._snapshot = snapshot

    def filter_by(self, **changes) -> None:
        self.state = self.state.with_criteria(**changes)

    def sort_by(self, sort_key: str) -> None:
        self.state = self.state.with_sort(sort_key)

    def clear(self) -> None:
        self.state = self.state.cleared()

    def results(self) -> List[Expert]:
        snapshot, state = self._snapshot, self.state
        return query_experts(snapshot.experts, state.criteria, state.sort_key)

    def college_facets(self) -> List[CollegeFacet]:
        """Colleges with their departments, both alphabetical."""
        departments: Dict[str, set] = {}
        for expert in self._snapshot.experts:
            if not expert.college:
                continue
            names = departments.setdefault(expert.college, set())
            if expert.department:
                names.add(expert.department)
        return [
            CollegeFacet(name=college, departments=tuple(sorted(departments[college])))
            for college in sorted(departments)
        ]

    def degree_facets(self) -> List[str]:
        return sorted({expert.degree for expert in self._snapshot.experts if expert.degree})

    def profile(self, expert_id: str) -> Optional["ExpertProfileView"]:
        return ExpertProfileView.for_expert(self._snapshot, expert_id)


@dataclass(frozen=True)
class ProfileState:
    criteria: PublicationCriteria = field(default_factory=PublicationCriteria)
    sort_key: str = "year_desc"


class ExpertProfileView:
    """Controller for one expert's profile page and publication list."""

    def __init__(self, expert: Expert, snapshot: ExpertSnapshot):
        self.expert = expert
        self._snapshot = snapshot
        self.state = ProfileState()

    @classmethod
    def for_expert(cls, snapshot: ExpertSnapshot, expert_id: str) -> Optional["ExpertProfileView"]:
        """
        Build the profile for ``expert_id``.

        The list record and the detail record are merged for this one expert
        only. Returns None when neither exists.
        """
        key = to_identifier(expert_id)
        if key is None:
            return None
        base = next((e for e in snapshot.experts if e.id == key), None)
        detail: Optional[ExpertDetail] = snapshot.details.get(key)
        if base is None:
            if detail is None:
                return None
            base = Expert(id=key)
        return cls(merge_records(base, detail), snapshot)

    def filter_by(self, **changes) -> None:
        self.state = replace(self.state, criteria=replace(self.state.criteria, **changes))

    def sort_by(self, sort_key: str) -> None:
        self.state = replace(self.state, sort_key=sort_key)

    def publications(self) -> List[Publication]:
        state = self.state
        return query_publications(self.expert.publications, state.criteria, state.sort_key)

    def total_cited(self) -> int:
        return sum(p.total_citations for p in self.expert.publications)

    def similar(self, limit: int = SIMILAR_PROFILE_LIMIT) -> List[Tuple[str, str]]:
        """(id, name) pairs of similar experts; the id stands in for unknown names."""
        snapshot = self._snapshot
        pairs = []
        for similar_id in snapshot.similar.get(self.expert.id, ())[:limit]:
            detail = snapshot.details.get(similar_id)
            name = detail.name if detail and detail.name else similar_id
            pairs.append((similar_id, name))
        return pairs
