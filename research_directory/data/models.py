"""Data models for the directory JSON documents.

Upstream documents come from several export generations: the same field is
spelled ``totalCitations`` or ``total_citations``, SQL NULLs arrive as the
string ``"NULL"`` and some sub-documents are stored JSON-encoded. The models
accept every variant and expose a single canonical shape, so the query engine
never looks at raw upstream names.
"""

import json
import math
from typing import Any, Dict, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def normalize_null(value: Any) -> Any:
    """Map None, blank strings and the literal ``"NULL"`` to None."""
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped or stripped.upper() == "NULL":
            return None
    return value


def safe_json_loads(text: str) -> Any:
    """Parse JSON, returning None instead of raising on malformed input."""
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


def to_identifier(value: Any) -> Optional[str]:
    """Normalize numeric and string identifiers to one string form."""
    value = normalize_null(value)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def to_text(value: Any) -> Optional[str]:
    value = normalize_null(value)
    return None if value is None else str(value)


def to_number(value: Any) -> Optional[float]:
    """Return a finite float, or None for anything else."""
    value = normalize_null(value)
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_int(value: Any, default: int = 0) -> int:
    number = to_number(value)
    return int(number) if number is not None else default


def parse_citation_breakdown(value: Any) -> Optional[Dict[int, int]]:
    """
    Normalize a yearly citation breakdown into a ``{year: count}`` mapping.

    Accepts a sequence of ``{"year", "citations"}`` entries, a year-keyed
    mapping, or a JSON string holding either. Entries whose year cannot be
    parsed are skipped, missing counts count as 0 and repeated years are
    summed.

    Returns:
        The mapping, or None when there is no breakdown at all.
    """
    value = normalize_null(value)
    if value is None:
        return None
    if isinstance(value, str):
        value = safe_json_loads(value)

    if isinstance(value, dict):
        items = list(value.items())
    elif isinstance(value, (list, tuple)):
        items = [
            (entry.get("year"), entry.get("citations"))
            for entry in value
            if isinstance(entry, dict)
        ]
    else:
        return None

    breakdown: Dict[int, int] = {}
    for year, count in items:
        year_number = to_number(year)
        if year_number is None:
            continue
        year_key = int(year_number)
        breakdown[year_key] = breakdown.get(year_key, 0) + to_int(count)
    return breakdown


def parse_eligibility(value: Any) -> Tuple[str, ...]:
    """
    Extract applicant type names from an eligibility field.

    The field is either a list of ``{"applicant_type_name": ...}`` objects or
    a JSON string of one. Malformed JSON means no eligibility data.
    """
    value = normalize_null(value)
    if isinstance(value, str):
        value = safe_json_loads(value)
    if not isinstance(value, (list, tuple)):
        return ()

    names = []
    for entry in value:
        if isinstance(entry, dict):
            name = entry.get("applicant_type_name")
        elif isinstance(entry, str):
            name = entry
        else:
            continue
        if name:
            names.append(str(name))
    return tuple(names)


def _string_list(value: Any) -> Tuple[str, ...]:
    value = normalize_null(value)
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v) for v in value if normalize_null(v) is not None)


def _dict_list(value: Any) -> Tuple[dict, ...]:
    value = normalize_null(value)
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(v for v in value if isinstance(v, (dict, BaseModel)))


class Record(BaseModel):
    """Base for all read-only directory records."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Publication(Record):
    """Represents a single publication on an expert profile."""

    title: str = ""
    publication_date: Optional[str] = None
    link: Optional[str] = None
    total_citations: int = Field(
        0, validation_alias=AliasChoices("totalCitations", "total_citations")
    )
    citations_per_year: Optional[Dict[int, int]] = Field(
        None,
        validation_alias=AliasChoices(
            "citationsPerYear", "citations_per_year", "citation_per_year"
        ),
    )
    authors_display: Optional[str] = None
    published_in: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v: Any) -> str:
        return to_text(v) or ""

    @field_validator("publication_date", "link", "authors_display", "published_in", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> Optional[str]:
        return to_text(v)

    @field_validator("total_citations", mode="before")
    @classmethod
    def _total(cls, v: Any) -> int:
        return to_int(v)

    @field_validator("citations_per_year", mode="before")
    @classmethod
    def _breakdown(cls, v: Any) -> Optional[Dict[int, int]]:
        return parse_citation_breakdown(v)


class ExpertDetail(Record):
    """Heavy per-expert record from ``expert_details.json``."""

    id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "auid"))
    name: Optional[str] = None
    title: Optional[str] = None
    college: Optional[str] = None
    department: Optional[str] = None
    degree: Optional[str] = None
    expertise: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    publications: Tuple[Publication, ...] = ()

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> Optional[str]:
        return to_identifier(v)

    @field_validator("name", "title", "college", "department", "degree", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> Optional[str]:
        return to_text(v)

    @field_validator("expertise", "keywords", mode="before")
    @classmethod
    def _strings(cls, v: Any) -> Tuple[str, ...]:
        return _string_list(v)

    @field_validator("publications", mode="before")
    @classmethod
    def _publications(cls, v: Any) -> Tuple[dict, ...]:
        return _dict_list(v)


class Expert(Record):
    """
    Expert list record from ``experts.json``.

    The detail-only fields stay empty until the record is merged with its
    ExpertDetail.
    """

    id: str = Field(..., validation_alias=AliasChoices("id", "auid"))
    name: str = ""
    title: Optional[str] = None
    college: Optional[str] = None
    department: Optional[str] = None
    degree: Optional[str] = None
    total_citations: int = Field(
        0, validation_alias=AliasChoices("totalCitations", "total_citations")
    )
    citations_per_year: Optional[Dict[int, int]] = Field(
        None,
        validation_alias=AliasChoices(
            "citationsPerYear", "citations_per_year", "citation_per_year"
        ),
    )
    publication_count: int = Field(
        0, validation_alias=AliasChoices("publication_count", "publicationCount")
    )
    keyword_count: int = Field(
        0, validation_alias=AliasChoices("keyword_count", "keywordCount")
    )
    expertise: Tuple[str, ...] = ()
    keywords: Tuple[str, ...] = ()
    publications: Tuple[Publication, ...] = ()

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> str:
        identifier = to_identifier(v)
        if not identifier:
            raise ValueError("expert record has no identifier")
        return identifier

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v: Any) -> str:
        return to_text(v) or ""

    @field_validator("title", "college", "department", "degree", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> Optional[str]:
        return to_text(v)

    @field_validator("total_citations", "publication_count", "keyword_count", mode="before")
    @classmethod
    def _counts(cls, v: Any) -> int:
        return to_int(v)

    @field_validator("citations_per_year", mode="before")
    @classmethod
    def _breakdown(cls, v: Any) -> Optional[Dict[int, int]]:
        return parse_citation_breakdown(v)

    @field_validator("expertise", "keywords", mode="before")
    @classmethod
    def _strings(cls, v: Any) -> Tuple[str, ...]:
        return _string_list(v)

    @field_validator("publications", mode="before")
    @classmethod
    def _publications(cls, v: Any) -> Tuple[dict, ...]:
        return _dict_list(v)


class OpportunityDetail(Record):
    """Detail record from ``Opportunities_details.json``."""

    opp_id: str
    description: Optional[str] = None
    url: Optional[str] = None

    @field_validator("opp_id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> str:
        identifier = to_identifier(v)
        if not identifier:
            raise ValueError("opportunity detail has no opp_id")
        return identifier

    @field_validator("description", "url", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> Optional[str]:
        return to_text(v)


class Opportunity(Record):
    """
    Funding opportunity list record from ``Opportunities.json``.

    ``description`` and ``url`` only carry values after a merge with the
    matching OpportunityDetail.
    """

    opp_id: str
    title: str = ""
    number: Optional[str] = None
    post_date: Optional[str] = None
    due_date: Optional[str] = None
    award_ceiling: Optional[float] = None
    award_floor: Optional[float] = None
    estimated_funding: Optional[float] = None
    agency_id: Optional[str] = None
    category_id: Optional[str] = None
    eligibility: Tuple[str, ...] = ()
    description: Optional[str] = None
    url: Optional[str] = None

    @field_validator("opp_id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> str:
        identifier = to_identifier(v)
        if not identifier:
            raise ValueError("opportunity record has no opp_id")
        return identifier

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, v: Any) -> str:
        return to_text(v) or ""

    @field_validator("number", "post_date", "due_date", "description", "url", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> Optional[str]:
        return to_text(v)

    @field_validator("agency_id", "category_id", mode="before")
    @classmethod
    def _optional_id(cls, v: Any) -> Optional[str]:
        return to_identifier(v)

    @field_validator("award_ceiling", "award_floor", "estimated_funding", mode="before")
    @classmethod
    def _money(cls, v: Any) -> Optional[float]:
        return to_number(v)

    @field_validator("eligibility", mode="before")
    @classmethod
    def _eligibility(cls, v: Any) -> Tuple[str, ...]:
        return parse_eligibility(v)


class Agency(Record):
    """A node of the funding agency hierarchy."""

    id: str
    name: Optional[str] = None
    parent_id: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, v: Any) -> str:
        identifier = to_identifier(v)
        if not identifier:
            raise ValueError("agency has no id")
        return identifier

    @field_validator("name", mode="before")
    @classmethod
    def _name(cls, v: Any) -> Optional[str]:
        return to_text(v)

    @field_validator("parent_id", mode="before")
    @classmethod
    def _parent(cls, v: Any) -> Optional[str]:
        return to_identifier(v)
