from datetime import datetime, timezone

import pytest

from research_directory.data.models import Agency, Expert, Opportunity, Publication


NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def experts():
    return [
        Expert.model_validate({
            "id": "a", "name": "Ann Lee", "college": "Engineering",
            "department": "Computer Science", "degree": "PhD",
            "totalCitations": 10, "citationsPerYear": {"2020": 4, "2021": 6},
            "publicationCount": 3, "keywordCount": 7,
        }),
        Expert.model_validate({
            "id": "b", "name": "Ben Ortiz", "college": "Engineering",
            "department": "Mechanical Engineering", "degree": "MSc",
            "totalCitations": 5, "citationsPerYear": {},
            "publicationCount": 9, "keywordCount": 2,
        }),
        Expert.model_validate({
            "id": "c", "name": "carla Diaz", "college": "Arts",
            "department": "History", "degree": "PhD",
            "total_citations": 40,
            "citation_per_year": [{"year": 2019, "citations": 30}, {"year": 2022, "citations": 10}],
            "publicationCount": 1, "keywordCount": 1,
        }),
    ]


@pytest.fixture
def publications():
    return [
        Publication.model_validate({
            "title": "Graph Neural Networks", "publication_date": "2021-03-01",
            "total_citations": 12, "citation_per_year": [{"year": 2022, "citations": 12}],
        }),
        Publication.model_validate({
            "title": "Old Survey", "publication_date": "1998-07-15",
            "total_citations": 50, "citation_per_year": {"2000": 20, "2023": 30},
        }),
        Publication.model_validate({
            "title": "Undated Note", "publication_date": None, "total_citations": None,
        }),
    ]


@pytest.fixture
def agencies():
    return [
        Agency.model_validate({"id": 1, "name": "HHS", "parent_id": None}),
        Agency.model_validate({"id": 2, "name": "NIH", "parent_id": 1}),
        Agency.model_validate({"id": 3, "name": "NCI", "parent_id": "2"}),
        Agency.model_validate({"id": 4, "name": "NSF", "parent_id": None}),
    ]


@pytest.fixture
def opportunities():
    return [
        Opportunity.model_validate({
            "opp_id": 10, "title": "Cancer Moonshot", "number": "RFA-CA-25-001",
            "post_date": "2025-01-10", "due_date": "2025-09-01",
            "award_ceiling": 500000, "agency_id": 3,
            "eligibility": '[{"applicant_type_name": "Public universities"}]',
        }),
        Opportunity.model_validate({
            "opp_id": "11", "title": "Closed Call", "post_date": "2019-01-01",
            "due_date": "2020-01-01", "award_ceiling": 100, "agency_id": "2",
        }),
        Opportunity.model_validate({
            "opp_id": "12", "title": "Basic Research", "number": "NSF-25-12",
            "post_date": "2025-02-01", "due_date": None,
            "award_ceiling": None, "estimated_funding": "2500000", "agency_id": "4",
        }),
        Opportunity.model_validate({
            "opp_id": "13", "title": "Aging Studies", "post_date": None,
            "due_date": "2025-07-15 23:59:00", "award_ceiling": "NULL",
            "estimated_funding": None, "agency_id": "2",
        }),
    ]
