"""Database connection management for the export."""

import sqlite3
from pathlib import Path
from typing import Optional

from config.settings import settings


def get_db_connection(db_path: Optional[Path] = None, read_only: bool = False) -> sqlite3.Connection:
    """
    Get a connection to the SQLite database.

    Args:
        db_path: Optional custom database path. Uses settings.database_path if not provided.
        read_only: Open an existing database without write access. The export
            only reads, so it never creates an empty database by accident.

    Returns:
        SQLite connection with Row factory enabled.
    """
    db_path = Path(db_path or settings.database_path)

    if read_only:
        conn = sqlite3.connect(f"{db_path.resolve().as_uri()}?mode=ro", uri=True)
    else:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn


def init_database(db_path: Optional[Path] = None) -> None:
    """
    Create the researcher tables if they don't exist.

    Args:
        db_path: Optional custom database path.
    """
    from .experts_db import init_expert_tables

    conn = get_db_connection(db_path)
    try:
        init_expert_tables(conn)
    finally:
        conn.close()
