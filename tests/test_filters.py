from datetime import datetime

import pytest

from research_directory.data.models import Agency, Expert, Opportunity, Publication
from research_directory.engine.agencies import AgencyHierarchy
from research_directory.engine.criteria import (
    ExpertCriteria,
    OpportunityCriteria,
    PublicationCriteria,
)
from research_directory.engine.filters import (
    filter_experts,
    filter_opportunities,
    filter_publications,
    funding_value,
    is_open,
    matches_funding,
    publication_year,
)


def test_windowed_citation_threshold_scenario():
    experts = [
        Expert.model_validate({"id": "a", "name": "Ann", "totalCitations": 10,
                               "citationsPerYear": {"2020": 4, "2021": 6}}),
        Expert.model_validate({"id": "b", "name": "Ben", "totalCitations": 5,
                               "citationsPerYear": {}}),
    ]
    result = filter_experts(experts, ExpertCriteria(recency_year=2021, min_citations=5))
    assert [e.id for e in result] == ["a"]


def test_empty_criteria_keeps_everything_in_order(experts):
    assert filter_experts(experts, ExpertCriteria()) == experts


def test_search_is_case_insensitive(experts):
    result = filter_experts(experts, ExpertCriteria(search="  CARLA "))
    assert [e.id for e in result] == ["c"]


def test_categorical_sets_are_conjunctive(experts):
    criteria = ExpertCriteria(colleges={"Engineering"}, degrees={"PhD"})
    assert [e.id for e in filter_experts(experts, criteria)] == ["a"]

    criteria = ExpertCriteria(departments=["History", "Mechanical Engineering"])
    assert [e.id for e in filter_experts(experts, criteria)] == ["b", "c"]


def test_filter_on_empty_collection():
    assert filter_experts([], ExpertCriteria(min_citations=3)) == []
    assert filter_opportunities([], OpportunityCriteria()) == []


def test_publication_year_parsing(publications):
    assert [publication_year(p) for p in publications] == [2021, 1998, 0]
    assert publication_year(Publication(title="x", publication_date="n.d.")) == 0


def test_publication_year_range(publications):
    criteria = PublicationCriteria(start_year=2000)
    assert [p.title for p in filter_publications(publications, criteria)] == ["Graph Neural Networks"]

    criteria = PublicationCriteria(end_year=2000)
    assert [p.title for p in filter_publications(publications, criteria)] == ["Old Survey"]


def test_default_year_range_drops_undated_publications(publications):
    titles = [p.title for p in filter_publications(publications, PublicationCriteria())]
    assert titles == ["Graph Neural Networks", "Old Survey"]

    undated = Publication(title="n.d.", publication_date=None)
    assert filter_publications([undated], PublicationCriteria(start_year=1900, end_year=2100)) == []


def test_publication_search_and_windowed_citations(publications):
    criteria = PublicationCriteria(search="survey")
    assert [p.title for p in filter_publications(publications, criteria)] == ["Old Survey"]

    criteria = PublicationCriteria(recency_year=2022, min_citations=12)
    assert [p.title for p in filter_publications(publications, criteria)] == [
        "Graph Neural Networks",
        "Old Survey",
    ]


def test_open_filter_scenario():
    opps = [
        Opportunity.model_validate({"opp_id": "1", "due_date": "2020-01-01"}),
        Opportunity.model_validate({"opp_id": "2", "due_date": None}),
    ]
    result = filter_opportunities(opps, OpportunityCriteria(), now=datetime(2025, 1, 1))
    assert [o.opp_id for o in result] == ["2"]


def test_due_date_equal_to_now_is_open(now):
    opp = Opportunity.model_validate({"opp_id": "1", "due_date": "2025-06-01T00:00:00Z"})
    assert is_open(opp, now)


def test_unparseable_due_date_counts_as_open(now):
    opp = Opportunity.model_validate({"opp_id": "1", "due_date": "sometime soon"})
    assert is_open(opp, now)


def test_funding_value_falls_back_to_estimate(opportunities):
    assert funding_value(opportunities[0]) == 500000
    assert funding_value(opportunities[2]) == 2500000
    assert funding_value(opportunities[3]) is None


@pytest.mark.parametrize("low,high,expected", [
    (None, None, True),
    (100000, None, True),
    (None, 500000, True),
    (500001, None, False),
    (None, 499999, False),
])
def test_funding_bounds_are_inclusive(opportunities, low, high, expected):
    assert matches_funding(opportunities[0], low, high) is expected


def test_funding_filter_excludes_records_without_amounts(opportunities):
    assert not matches_funding(opportunities[3], 0, None)
    assert matches_funding(opportunities[3], None, None)


def test_agency_scope_includes_descendants(opportunities, agencies, now):
    hierarchy = AgencyHierarchy(agencies)
    criteria = OpportunityCriteria(agency_id="1")
    result = filter_opportunities(opportunities, criteria, hierarchy.scope("1"), now)
    assert [o.opp_id for o in result] == ["10", "13"]


def test_three_level_agency_scenario(now):
    hierarchy = AgencyHierarchy([
        Agency.model_validate({"id": "1", "parent_id": None}),
        Agency.model_validate({"id": "2", "parent_id": "1"}),
        Agency.model_validate({"id": "3", "parent_id": "2"}),
    ])
    opps = [
        Opportunity.model_validate({"opp_id": str(i), "agency_id": agency})
        for i, agency in enumerate([1, 2, 3, 4])
    ]
    result = filter_opportunities(opps, OpportunityCriteria(), hierarchy.scope("1"), now)
    assert [o.agency_id for o in result] == ["1", "2", "3"]


def test_opportunity_search_matches_title_or_number(opportunities, now):
    result = filter_opportunities(opportunities, OpportunityCriteria(search="nsf-25"), now=now)
    assert [o.opp_id for o in result] == ["12"]
    result = filter_opportunities(opportunities, OpportunityCriteria(search="aging"), now=now)
    assert [o.opp_id for o in result] == ["13"]


def test_filters_do_not_modify_input(opportunities, now):
    before = list(opportunities)
    filter_opportunities(opportunities, OpportunityCriteria(funding_min=1), now=now)
    assert opportunities == before
