import pytest

from research_directory.data.models import Expert, Opportunity, Publication
from research_directory.engine.criteria import ExpertCriteria
from research_directory.engine.filters import filter_experts
from research_directory.engine.sorting import SORTERS, sort_records


def _opps(*rows):
    return [Opportunity.model_validate(row) for row in rows]


def test_name_asc_is_case_insensitive(experts):
    assert [e.name for e in sort_records(experts, "name_asc")] == ["Ann Lee", "Ben Ortiz", "carla Diaz"]


def test_name_sort_collates_accented_names():
    experts = [
        Expert(id="1", name="Zoe Adams"),
        Expert(id="2", name="Émile Roux"),
        Expert(id="3", name="Ösel Kaya"),
        Expert(id="4", name="eva Brandt"),
    ]
    assert [e.name for e in sort_records(experts, "name_asc")] == [
        "Émile Roux",
        "eva Brandt",
        "Ösel Kaya",
        "Zoe Adams",
    ]


def test_unknown_key_falls_back_to_name(experts):
    assert sort_records(experts, "bogus") == sort_records(experts, "name_asc")
    assert sort_records(experts, None) == sort_records(experts, "name_asc")


def test_publications_sort_by_title_under_name_key(publications):
    titles = [p.title for p in sort_records(publications, "name_asc")]
    assert titles == ["Graph Neural Networks", "Old Survey", "Undated Note"]


def test_citations_descending_with_window(experts):
    assert [e.id for e in sort_records(experts, "citations")] == ["c", "a", "b"]
    assert [e.id for e in sort_records(experts, "citations", 2021)] == ["c", "a", "b"]
    assert [e.id for e in sort_records(experts, "citations", 2022)] == ["c", "a", "b"]
    assert [e.id for e in sort_records(experts, "citations", 2020)] == ["a", "c", "b"]


def test_citation_sort_is_stable_for_ties():
    experts = [Expert(id=str(i), name=f"E{i}", total_citations=5) for i in range(10)]
    assert [e.id for e in sort_records(experts, "citations")] == [str(i) for i in range(10)]


def test_sort_does_not_modify_input(experts):
    before = list(experts)
    sort_records(experts, "citations")
    assert experts == before


@pytest.mark.parametrize("key", ["year_desc", "year_asc"])
def test_undated_publications_sort_last(publications, key):
    assert sort_records(publications, key)[-1].title == "Undated Note"


def test_year_sorts(publications):
    assert [p.title for p in sort_records(publications, "year_desc")][:2] == ["Graph Neural Networks", "Old Survey"]
    assert [p.title for p in sort_records(publications, "year_asc")][:2] == ["Old Survey", "Graph Neural Networks"]


@pytest.mark.parametrize("key,expected", [
    ("due_asc", ["b", "a", "none"]),
    ("due_desc", ["a", "b", "none"]),
])
def test_missing_due_date_sorts_last_in_both_directions(key, expected):
    opps = _opps(
        {"opp_id": "none", "title": "N", "due_date": None},
        {"opp_id": "a", "title": "A", "due_date": "2026-05-01"},
        {"opp_id": "b", "title": "B", "due_date": "2025-12-01"},
    )
    assert [o.opp_id for o in sort_records(opps, key)] == expected


@pytest.mark.parametrize("key,expected", [
    ("posted_desc", ["new", "old", "bad", "none"]),
    ("posted_asc", ["old", "new", "bad", "none"]),
])
def test_missing_post_date_sorts_last(key, expected):
    opps = _opps(
        {"opp_id": "bad", "post_date": "not a date"},
        {"opp_id": "old", "post_date": "2020-01-01"},
        {"opp_id": "none"},
        {"opp_id": "new", "post_date": "2024-01-01 08:00:00"},
    )
    assert [o.opp_id for o in sort_records(opps, key)] == expected


def test_title_sorts():
    opps = _opps(
        {"opp_id": "1", "title": "beta"},
        {"opp_id": "2", "title": "Alpha"},
        {"opp_id": "3", "title": ""},
    )
    assert [o.opp_id for o in sort_records(opps, "title_asc")] == ["3", "2", "1"]
    assert [o.opp_id for o in sort_records(opps, "title_desc")] == ["1", "2", "3"]


def test_count_sorts(experts):
    assert [e.id for e in sort_records(experts, "publications")] == ["b", "a", "c"]
    assert [e.id for e in sort_records(experts, "keywords")] == ["a", "b", "c"]


@pytest.mark.parametrize("key", sorted(SORTERS))
def test_every_key_handles_records_without_sort_fields(key):
    records = [Publication(), Publication(title="x"), Publication()]
    assert len(sort_records(records, key)) == 3


def test_filter_then_sort_keeps_relative_order_of_survivors(experts):
    criteria = ExpertCriteria(colleges={"Engineering"})
    filtered = filter_experts(experts, criteria)
    tied = [e.model_copy(update={"total_citations": 1}) for e in filtered]
    assert sort_records(tied, "citations") == tied
