#!/usr/bin/env python3
import argparse
import os
import sys
from pathlib import Path

import psycopg
from psycopg.rows import dict_row

from backend.app.logs import json_log

MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "db" / "migrations"


def pending_migrations(applied: set, directory: Path = MIGRATIONS_DIR) -> list:
    files = sorted(p for p in directory.glob("*.sql") if p.is_file())
    return [p for p in files if p.name not in applied]


def main() -> int:
    parser = argparse.ArgumentParser(description="Apply pending SQL migrations in filename order.")
    parser.add_argument(
        "--db",
        default=os.getenv("DATABASE_URL") or "postgresql://localhost/erp",
        help="Postgres connection string (defaults to $DATABASE_URL).",
    )
    parser.add_argument("--dir", default=str(MIGRATIONS_DIR), help="Directory holding *.sql files.")
    args = parser.parse_args()

    directory = Path(args.dir)
    if not directory.is_dir():
        print(f"migrations directory not found: {directory}", file=sys.stderr)
        return 2

    with psycopg.connect(args.db, row_factory=dict_row, autocommit=True) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
              name text PRIMARY KEY,
              executed_at timestamptz NOT NULL DEFAULT now()
            )
            """
        )
        applied = {r["name"] for r in conn.execute("SELECT name FROM schema_migrations").fetchall()}

        todo = pending_migrations(applied, directory)
        if not todo:
            json_log("info", "migrate.up_to_date", applied=len(applied))
            return 0

        for path in todo:
            json_log("info", "migrate.apply", name=path.name)
            sql = path.read_text(encoding="utf-8")
            try:
                # One transaction per file: a failing migration leaves no trace.
                with conn.transaction():
                    conn.execute(sql)
                    conn.execute("INSERT INTO schema_migrations (name) VALUES (%s)", (path.name,))
            except psycopg.Error as exc:
                json_log("error", "migrate.failed", name=path.name, error=str(exc))
                raise
            json_log("info", "migrate.applied", name=path.name)

    print("OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
