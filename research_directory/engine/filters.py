"""
Filter engine for experts, publications and funding opportunities.

Every filter is a pure AND of independent predicates. Input order is
preserved and no record is modified.
"""

from datetime import datetime, timezone
from typing import AbstractSet, Iterable, List, Optional

from ..data.models import Expert, Opportunity, Publication
from .citations import citations_since
from .criteria import ExpertCriteria, OpportunityCriteria, PublicationCriteria
from .dates import parse_date

# Year bounds used when only one end of a publication year range is given
MIN_PUBLICATION_YEAR = 1900
MAX_PUBLICATION_YEAR = 2100


def _normalize_query(search: Optional[str]) -> str:
    return (search or "").strip().lower()


def matches_text(query: str, *fields: Optional[str]) -> bool:
    """Case-insensitive substring match; an empty query matches everything."""
    if not query:
        return True
    return any(query in (value or "").lower() for value in fields)


def matches_member(value: Optional[str], allowed: AbstractSet[str]) -> bool:
    return not allowed or value in allowed


def publication_year(publication: Publication) -> int:
    """Year from the first four characters of the date, 0 when unknown."""
    date = publication.publication_date or ""
    try:
        return int(date[:4])
    except ValueError:
        return 0


def is_open(opportunity: Opportunity, now: datetime) -> bool:
    """Open means no due date, or a due date at or after ``now``."""
    due = parse_date(opportunity.due_date)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return due is None or due >= now


def funding_value(opportunity: Opportunity) -> Optional[float]:
    """Award ceiling, falling back to the estimated funding."""
    if opportunity.award_ceiling is not None:
        return opportunity.award_ceiling
    return opportunity.estimated_funding


def matches_funding(
    opportunity: Opportunity,
    funding_min: Optional[float],
    funding_max: Optional[float],
) -> bool:
    if funding_min is None and funding_max is None:
        return True
    value = funding_value(opportunity)
    if value is None:
        return False
    if funding_min is not None and value < funding_min:
        return False
    if funding_max is not None and value > funding_max:
        return False
    return True


def matches_agency(opportunity: Opportunity, scope: Optional[AbstractSet[str]]) -> bool:
    if scope is None:
        return True
    return opportunity.agency_id in scope


def filter_experts(experts: Iterable[Expert], criteria: ExpertCriteria) -> List[Expert]:
    query = _normalize_query(criteria.search)
    return [
        expert
        for expert in experts
        if matches_text(query, expert.name)
        and matches_member(expert.college, criteria.colleges)
        and matches_member(expert.degree, criteria.degrees)
        and matches_member(expert.department, criteria.departments)
        and citations_since(expert, criteria.recency_year) >= (criteria.min_citations or 0)
    ]


def filter_publications(
    publications: Iterable[Publication],
    criteria: PublicationCriteria,
) -> List[Publication]:
    """
    Filter the publications of one expert.

    A missing year bound defaults to MIN_PUBLICATION_YEAR / MAX_PUBLICATION_YEAR,
    so undated publications (year 0) are always left out.
    """
    query = _normalize_query(criteria.search)
    start = criteria.start_year or MIN_PUBLICATION_YEAR
    end = criteria.end_year or MAX_PUBLICATION_YEAR

    return [
        publication
        for publication in publications
        if matches_text(query, publication.title)
        and start <= publication_year(publication) <= end
        and citations_since(publication, criteria.recency_year) >= (criteria.min_citations or 0)
    ]


def filter_open(opportunities: Iterable[Opportunity], now: Optional[datetime] = None) -> List[Opportunity]:
    now = now or datetime.now(timezone.utc)
    return [opportunity for opportunity in opportunities if is_open(opportunity, now)]


def filter_opportunities(
    opportunities: Iterable[Opportunity],
    criteria: OpportunityCriteria,
    scope: Optional[AbstractSet[str]] = None,
    now: Optional[datetime] = None,
) -> List[Opportunity]:
    """
    Filter funding opportunities.

    Closed opportunities are always dropped. ``scope`` is the agency scope
    from AgencyHierarchy.scope (None for no agency constraint).
    """
    query = _normalize_query(criteria.search)
    return [
        opportunity
        for opportunity in filter_open(opportunities, now)
        if matches_funding(opportunity, criteria.funding_min, criteria.funding_max)
        and matches_agency(opportunity, scope)
        and matches_text(query, opportunity.title, opportunity.number)
    ]
