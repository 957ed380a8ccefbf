"""
Export researchers from the SQL database into the static JSON documents.

Writes ``experts.json`` (list records with aggregated citations),
``expert_details.json`` (expertise, keywords and publications keyed by
expert id) and ``expert_similar_profiles.json``.
"""

import json
import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from config.settings import settings
from .data.experts_db import (
    EXPERT_TABLES,
    describe_table,
    fetch_expert_rows,
    fetch_expertise_rows,
    fetch_keyword_rows,
    fetch_publication_rows,
    fetch_similar_profile_pairs,
    list_tables,
    resolve_table,
)
from .data.models import parse_citation_breakdown, to_int

logger = logging.getLogger(__name__)


def inspect_schema(conn: sqlite3.Connection) -> Dict[str, Optional[List[dict]]]:
    """
    Describe the expert-related tables.

    Returns:
        Mapping of table name to its columns, or None for missing tables
    """
    tables = list_tables(conn)
    schema: Dict[str, Optional[List[dict]]] = {}
    for name in EXPERT_TABLES:
        actual = resolve_table(tables, name)
        schema[name] = describe_table(conn, actual) if actual else None
    return schema


def export_experts_list(conn: sqlite3.Connection) -> List[dict]:
    """List records, before citation aggregation."""
    try:
        rows = fetch_expert_rows(conn)
    except sqlite3.Error as e:
        logger.error(f"Expert list query failed: {e}")
        return []

    return [
        {
            "id": str(row["id"]),
            "name": row["name"] or "Unnamed",
            "title": row["title"] or "",
            "college": row["college"] or "",
            "department": row["department"] or "",
            "degree": row["degree"] or "",
            "publicationCount": int(row["publication_count"] or 0),
            "keywordCount": int(row["keyword_count"] or 0),
            "totalCitations": 0,
            "citationsPerYear": {},
        }
        for row in rows
    ]


def _date_string(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()[:10]
    text = str(value).strip()
    return text[:10] if text else None


def publication_from_row(row: sqlite3.Row) -> dict:
    breakdown = parse_citation_breakdown(row["citation_per_year"]) or {}
    return {
        "title": row["title"] or "",
        "publication_date": _date_string(row["publication_date"]),
        "link": row["link"] or None,
        "authors_display": row["authors_display"] or None,
        "published_in": row["published_in"] or None,
        "total_citations": to_int(row["total_citations"]),
        "citation_per_year": [
            {"year": year, "citations": count}
            for year, count in sorted(breakdown.items())
        ],
    }


def _optional_rows(fetch, conn: sqlite3.Connection, label: str) -> list:
    try:
        return fetch(conn)
    except sqlite3.Error as e:
        logger.warning(f"Skipping {label} data: {e}")
        return []


def export_expert_details(conn: sqlite3.Connection, experts: List[dict]) -> Dict[str, dict]:
    """Detail records keyed by expert id."""
    details: Dict[str, dict] = {
        expert["id"]: {
            "name": expert["name"],
            "title": expert["title"],
            "college": expert["college"],
            "department": expert["department"],
            "degree": expert["degree"],
            "expertise": [],
            "keywords": [],
            "publications": [],
        }
        for expert in experts
    }

    for row in _optional_rows(fetch_expertise_rows, conn, "expertise"):
        detail = details.get(str(row["researcher_id"]))
        if detail is not None:
            detail["expertise"].append(row["topic"])

    seen_keywords = set()
    for row in _optional_rows(fetch_keyword_rows, conn, "keyword"):
        expert_id = str(row["researcher_id"])
        key = (expert_id, row["keyword"] or "")
        if key in seen_keywords:
            continue
        seen_keywords.add(key)
        detail = details.get(expert_id)
        if detail is not None:
            detail["keywords"].append(row["keyword"])

    for row in _optional_rows(fetch_publication_rows, conn, "publication"):
        detail = details.get(str(row["researcher_id"]))
        if detail is not None:
            detail["publications"].append(publication_from_row(row))

    return details


def with_citation_totals(experts: List[dict], details: Dict[str, dict]) -> List[dict]:
    """
    Copy of ``experts`` with citations aggregated from their publications.

    ``totalCitations`` is the sum of publication totals and
    ``citationsPerYear`` the per-year sum of the publication breakdowns.
    """
    aggregated = []
    for expert in experts:
        publications = details.get(expert["id"], {}).get("publications", [])
        per_year: Dict[int, int] = {}
        total = 0
        for publication in publications:
            total += publication["total_citations"]
            for entry in publication["citation_per_year"]:
                per_year[entry["year"]] = per_year.get(entry["year"], 0) + entry["citations"]
        aggregated.append({
            **expert,
            "totalCitations": total,
            "citationsPerYear": {str(year): per_year[year] for year in sorted(per_year)},
        })
    return aggregated


def export_similar_profiles(conn: sqlite3.Connection) -> Dict[str, List[str]]:
    try:
        return fetch_similar_profile_pairs(conn)
    except sqlite3.Error as e:
        logger.warning(f"Similar profile export failed: {e}")
        return {}


def _write_json(path: Path, data: Any) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def run_export(conn: sqlite3.Connection, out_dir: Optional[Path] = None) -> Dict[str, int]:
    """
    Write all expert documents to ``out_dir``.

    Args:
        conn: Database connection
        out_dir: Output directory, defaults to settings.data_dir

    Returns:
        Number of entries written per file name
    """
    out_dir = Path(out_dir or settings.data_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    experts = export_experts_list(conn)
    details = export_expert_details(conn, experts)
    experts = with_citation_totals(experts, details)
    similar = export_similar_profiles(conn)

    _write_json(out_dir / settings.experts_file, experts)
    _write_json(out_dir / settings.expert_details_file, details)
    _write_json(out_dir / settings.similar_profiles_file, similar)

    counts = {
        settings.experts_file: len(experts),
        settings.expert_details_file: len(details),
        settings.similar_profiles_file: len(similar),
    }
    logger.info(f"Exported {len(experts)} experts to {out_dir}")
    return counts
