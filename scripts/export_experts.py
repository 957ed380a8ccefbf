"""
Export researchers from the database into the static JSON documents.

This script:
1. Optionally prints the schema of the expert-related tables (--inspect)
2. Writes experts.json, expert_details.json and expert_similar_profiles.json (--export)
"""

import logging
import sys
from pathlib import Path

#
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config.settings import settings
from research_directory.data import get_db_connection
from research_directory.export import inspect_schema, run_export


def print_schema(conn) -> None:
    """Print the columns of every expert-related table."""
    schema = inspect_schema(conn)
    for table, columns in schema.items():
        if columns is None:
            print(f"  (table {table} not found)\n")
            continue
        print(f"DESCRIBE {table}:")
        for column in columns:
            print(f"   {column}")
        print()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        description="Export researchers from the database to static JSON"
    )
    parser.add_argument(
        "--inspect",
        action="store_true",
        help="Print the schema of the expert-related tables"
    )
    parser.add_argument(
        "--export",
        action="store_true",
        help="Write experts.json, expert_details.json and expert_similar_profiles.json"
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help=f"SQLite database path (default: {settings.database_path})"
    )
    parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help=f"Output directory (default: {settings.data_dir})"
    )

    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if not args.inspect and not args.export:
        parser.print_help()
        sys.exit(0)

    db_path = args.db or settings.database_path
    if not Path(db_path).exists():
        print(f"Error: database not found at {db_path}")
        sys.exit(1)

    conn = get_db_connection(db_path, read_only=True)
    try:
        if args.inspect:
            print_schema(conn)
        if args.export:
            counts = run_export(conn, args.out)
            for name, count in counts.items():
                print(f"Wrote {name} ({count} entries)")
    finally:
        conn.close()
