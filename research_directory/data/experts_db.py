"""Database operations for the researcher tables the export reads."""

import logging
import sqlite3
from typing import Dict, List, Optional, Sequence, Set

logger = logging.getLogger(__name__)

EXPERT_TABLES = [
    "users_researcher",
    "users_employee",
    "researcher_expertise",
    "papers_researchers",
    "users_college",
    "users_department",
    "users_degree",
    "papers",
    "paper_keywords",
    "users_similarprofile",
]

SIMILAR_PROFILE_TABLES = ["users_similarprofile", "users_similarprofiles"]


def init_expert_tables(conn: sqlite3.Connection) -> None:
    """Create the researcher tables if they don't exist."""
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS users_college (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL
        );
        CREATE TABLE IF NOT EXISTS users_department (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL
        );
        CREATE TABLE IF NOT EXISTS users_degree (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL
        );
        CREATE TABLE IF NOT EXISTS users_employee (
            auid TEXT PRIMARY KEY,
            first_name TEXT,
            last_name TEXT,
            email TEXT,
            title TEXT,
            college_id INTEGER REFERENCES users_college(id),
            department_id INTEGER REFERENCES users_department(id),
            degree_id INTEGER REFERENCES users_degree(id)
        );
        CREATE TABLE IF NOT EXISTS users_researcher (
            employee_id TEXT PRIMARY KEY REFERENCES users_employee(auid)
        );
        CREATE TABLE IF NOT EXISTS researcher_expertise (
            researcher_id TEXT NOT NULL,
            topic TEXT NOT NULL
        );
        CREATE TABLE IF NOT EXISTS papers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT,
            publication_date TEXT,
            link TEXT,
            authors_display TEXT,
            published_in TEXT,
            total_citations INTEGER,
            citation_per_year TEXT
        );
        CREATE TABLE IF NOT EXISTS papers_researchers (
            paper_id INTEGER NOT NULL REFERENCES papers(id),
            researcher_id TEXT NOT NULL,
            UNIQUE(paper_id, researcher_id)
        );
        CREATE TABLE IF NOT EXISTS paper_keywords (
            paper_id INTEGER NOT NULL REFERENCES papers(id),
            keyword TEXT NOT NULL
        );
        CREATE TABLE IF NOT EXISTS users_similarprofile (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            researcher_id TEXT NOT NULL,
            similar_researcher_id TEXT NOT NULL,
            score REAL
        );
        CREATE INDEX IF NOT EXISTS idx_papers_researchers_researcher
        ON papers_researchers(researcher_id);
    """)
    conn.commit()


def list_tables(conn: sqlite3.Connection) -> Set[str]:
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    return {row[0] for row in cursor.fetchall()}


def typo_name(name: str) -> str:
    """Legacy spelling some deployments use for the researcher tables."""
    return (
        name.replace("researchers", "reserchers")
        .replace("researcher", "resercher")
        .replace("employee", "empoyee")
    )


def resolve_table(tables: Set[str], name: str) -> Optional[str]:
    """Return the table's actual name, trying the legacy spelling too."""
    if name in tables:
        return name
    legacy = typo_name(name)
    return legacy if legacy in tables else None


def describe_table(conn: sqlite3.Connection, table: str) -> List[dict]:
    """Column descriptions for a table (name, type, notnull, default, pk)."""
    cursor = conn.execute(f'PRAGMA table_info("{table}")')
    return [
        {
            "name": row["name"],
            "type": row["type"],
            "notnull": bool(row["notnull"]),
            "default": row["dflt_value"],
            "pk": bool(row["pk"]),
        }
        for row in cursor.fetchall()
    ]


def fetch_expert_rows(conn: sqlite3.Connection) -> List[sqlite3.Row]:
    """One row per researcher with names, affiliation and counts."""
    cursor = conn.execute("""
        SELECT
            r.employee_id AS id,
            COALESCE(e.first_name || ' ' || e.last_name, e.email, r.employee_id) AS name,
            e.title,
            c.name AS college,
            d.name AS department,
            g.name AS degree,
            (SELECT COUNT(*) FROM papers_researchers pr
             WHERE pr.researcher_id = r.employee_id) AS publication_count,
            (SELECT COUNT(DISTINCT pk.keyword)
             FROM papers_researchers pr
             JOIN paper_keywords pk ON pk.paper_id = pr.paper_id
             WHERE pr.researcher_id = r.employee_id) AS keyword_count
        FROM users_researcher r
        JOIN users_employee e ON e.auid = r.employee_id
        LEFT JOIN users_college c ON c.id = e.college_id
        LEFT JOIN users_department d ON d.id = e.department_id
        LEFT JOIN users_degree g ON g.id = e.degree_id
        ORDER BY e.last_name, e.first_name
    """)
    return cursor.fetchall()


def fetch_expertise_rows(conn: sqlite3.Connection) -> List[sqlite3.Row]:
    cursor = conn.execute("SELECT researcher_id, topic FROM researcher_expertise")
    return cursor.fetchall()


def fetch_keyword_rows(conn: sqlite3.Connection) -> List[sqlite3.Row]:
    cursor = conn.execute("""
        SELECT pr.researcher_id, pk.keyword
        FROM papers_researchers pr
        JOIN paper_keywords pk ON pk.paper_id = pr.paper_id
    """)
    return cursor.fetchall()


def fetch_publication_rows(conn: sqlite3.Connection) -> List[sqlite3.Row]:
    """Publications per researcher, newest first."""
    cursor = conn.execute("""
        SELECT pr.researcher_id,
               p.title, p.publication_date, p.link, p.authors_display,
               p.published_in, p.total_citations, p.citation_per_year
        FROM papers_researchers pr
        JOIN papers p ON p.id = pr.paper_id
        ORDER BY pr.researcher_id, p.publication_date DESC
    """)
    return cursor.fetchall()


def _looks_like_score(column: str) -> bool:
    lowered = column.lower()
    return lowered == "score" or "similarity" in lowered


def fetch_similar_profile_pairs(conn: sqlite3.Connection) -> Dict[str, List[str]]:
    """
    Read similar-profile links into ``{researcher_id: [similar_id, ...]}``.

    The table's column names vary between deployments, so the researcher
    and similar-researcher columns are guessed from their names. Score
    columns are never picked, self-links are dropped and values that look
    like a similarity score rather than an employee code are skipped.
    """
    tables = list_tables(conn)
    by_id: Dict[str, List[str]] = {}

    for table in SIMILAR_PROFILE_TABLES:
        if table not in tables:
            continue
        columns = [col["name"] for col in describe_table(conn, table)]
        if len(columns) < 2:
            continue

        id_col = _first_match(
            columns, ("researcher_id", "user_id", "auid", "faculty_id", "source")
        ) or columns[0]
        candidates = [c for c in columns if c != id_col and not _looks_like_score(c)]
        similar_col = _first_match(
            candidates, ("similar", "target", "match", "other", "_id", "auid")
        ) or (candidates[0] if candidates else columns[1])

        try:
            rows = conn.execute(
                f'SELECT "{id_col}", "{similar_col}" FROM "{table}"'
            ).fetchall()
        except sqlite3.Error as e:
            logger.warning(f"Could not read {table}: {e}")
            continue

        for row in rows:
            researcher = str(row[0] if row[0] is not None else "").strip()
            similar = str(row[1] if row[1] is not None else "").strip()
            if not researcher or not similar or researcher == similar:
                continue
            if _is_score_value(similar):
                continue
            targets = by_id.setdefault(researcher, [])
            if similar not in targets:
                targets.append(similar)
        break

    return by_id


def _first_match(columns: Sequence[str], needles: Sequence[str]) -> Optional[str]:
    for column in columns:
        if any(needle in column for needle in needles):
            return column
    return None


def _is_score_value(value: str) -> bool:
    """Short decimal strings such as ``0.87`` are scores, not employee codes."""
    if len(value) > 5:
        return False
    digits = value.replace(".", "", 1)
    return digits.isdigit() and value.count(".") <= 1 and not value.endswith(".")
