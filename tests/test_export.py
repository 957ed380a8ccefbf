import json

import pytest

from research_directory.data import get_db_connection, init_expert_tables
from research_directory.data.experts_db import fetch_similar_profile_pairs, resolve_table
from research_directory.data.loader import DataService
from research_directory.engine import ExpertDirectory
from research_directory.export import (
    export_expert_details,
    export_experts_list,
    inspect_schema,
    run_export,
    with_citation_totals,
)


@pytest.fixture
def conn(tmp_path):
    conn = get_db_connection(tmp_path / "db" / "directory.sqlite")
    init_expert_tables(conn)
    conn.executescript("""
        INSERT INTO users_college (id, name) VALUES (1, 'Engineering');
        INSERT INTO users_department (id, name) VALUES (1, 'Computer Science');
        INSERT INTO users_degree (id, name) VALUES (1, 'PhD');
        INSERT INTO users_employee VALUES ('E1', 'Ann', 'Lee', 'ann@example.edu', 'Professor', 1, 1, 1);
        INSERT INTO users_employee VALUES ('E2', NULL, NULL, 'ben@example.edu', NULL, NULL, NULL, NULL);
        INSERT INTO users_researcher VALUES ('E1');
        INSERT INTO users_researcher VALUES ('E2');
        INSERT INTO researcher_expertise VALUES ('E1', 'Graphs');
        INSERT INTO papers (id, title, publication_date, total_citations, citation_per_year)
        VALUES (1, 'Graph Paper', '2021-03-01 00:00:00', 10,
                '[{"year": 2021, "citations": 4}, {"year": 2022, "citations": 6}]');
        INSERT INTO papers (id, title, publication_date, total_citations, citation_per_year)
        VALUES (2, 'Map Paper', '2019-05-05', 5, '{"2022": 1}');
        INSERT INTO papers (id, title, publication_date, total_citations, citation_per_year)
        VALUES (3, 'Broken', NULL, NULL, '{not json');
        INSERT INTO papers_researchers VALUES (1, 'E1');
        INSERT INTO papers_researchers VALUES (2, 'E1');
        INSERT INTO papers_researchers VALUES (3, 'E2');
        INSERT INTO paper_keywords VALUES (1, 'gnn');
        INSERT INTO paper_keywords VALUES (2, 'gnn');
        INSERT INTO paper_keywords VALUES (2, 'maps');
        INSERT INTO users_similarprofile (researcher_id, similar_researcher_id, score)
        VALUES ('E1', 'E2', 0.9);
        INSERT INTO users_similarprofile (researcher_id, similar_researcher_id, score)
        VALUES ('E1', 'E1', 1.0);
        INSERT INTO users_similarprofile (researcher_id, similar_researcher_id, score)
        VALUES ('E2', '0.87', 0.5);
    """)
    yield conn
    conn.close()


def test_inspect_schema_reports_missing_tables(conn):
    conn.execute("DROP TABLE users_degree")
    schema = inspect_schema(conn)
    assert schema["users_degree"] is None
    assert "auid" in [col["name"] for col in schema["users_employee"]]


def test_resolve_table_accepts_legacy_spelling():
    assert resolve_table({"users_resercher"}, "users_researcher") == "users_resercher"
    assert resolve_table({"papers_reserchers"}, "papers_researchers") == "papers_reserchers"
    assert resolve_table(set(), "papers") is None


def test_experts_list(conn):
    experts = export_experts_list(conn)
    assert [e["id"] for e in experts] == ["E2", "E1"]
    ann = next(e for e in experts if e["id"] == "E1")
    ben = next(e for e in experts if e["id"] == "E2")
    assert ann["name"] == "Ann Lee"
    assert ann["degree"] == "PhD"
    assert ann["publicationCount"] == 2
    assert ann["keywordCount"] == 2
    assert ben["name"] == "ben@example.edu"
    assert ben["college"] == ""


def test_details_and_citation_totals(conn):
    experts = export_experts_list(conn)
    details = export_expert_details(conn, experts)

    assert details["E1"]["expertise"] == ["Graphs"]
    assert sorted(details["E1"]["keywords"]) == ["gnn", "maps"]
    titles = [p["title"] for p in details["E1"]["publications"]]
    assert titles == ["Graph Paper", "Map Paper"]
    assert details["E1"]["publications"][0]["publication_date"] == "2021-03-01"
    assert details["E2"]["publications"][0]["citation_per_year"] == []

    totals = {e["id"]: e for e in with_citation_totals(experts, details)}
    assert totals["E1"]["totalCitations"] == 15
    assert totals["E1"]["citationsPerYear"] == {"2021": 4, "2022": 7}
    assert totals["E2"]["totalCitations"] == 0
    assert all(e["totalCitations"] == 0 for e in experts)


def test_similar_profiles_skip_self_links_and_scores(conn):
    assert fetch_similar_profile_pairs(conn) == {"E1": ["E2"]}


def test_run_export_round_trips_through_the_engine(conn, tmp_path):
    out_dir = tmp_path / "out"
    counts = run_export(conn, out_dir)
    assert counts["experts.json"] == 2

    with open(out_dir / "experts.json", encoding="utf-8") as f:
        assert len(json.load(f)) == 2

    service = DataService(out_dir)
    service.load_experts()
    service.load_expert_details()
    service.load_similar_profiles()
    directory = ExpertDirectory(service.expert_snapshot())

    directory.filter_by(recency_year=2022, min_citations=7)
    assert [e.id for e in directory.results()] == ["E1"]

    profile = directory.profile("E1")
    assert profile.total_cited() == 15
    assert profile.similar() == [("E2", "ben@example.edu")]
