#!/usr/bin/env python3
import argparse
import os
import sys

import psycopg
from psycopg.rows import dict_row

from backend.app.security import hash_password


def main() -> int:
    parser = argparse.ArgumentParser(description="Reset a user's password (admin/maintenance).")
    parser.add_argument(
        "--db",
        default=os.getenv("DATABASE_URL") or "postgresql://localhost/erp",
        help="Postgres connection string (defaults to $DATABASE_URL).",
    )
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    args = parser.parse_args()

    email = (args.email or "").strip().lower()
    if not email:
        print("email is required", file=sys.stderr)
        return 2
    if len(args.password) < 8:
        print("password must be at least 8 characters", file=sys.stderr)
        return 2

    with psycopg.connect(args.db, row_factory=dict_row) as conn:
        with conn.transaction():
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE usuarios
                    SET password_hash = %s,
                        activo = true
                    WHERE lower(email) = %s
                    RETURNING id
                    """,
                    (hash_password(args.password), email),
                )
                row = cur.fetchone()
                if not row:
                    print(f"user not found: {email}", file=sys.stderr)
                    return 2

                # Old tokens must not survive a password reset.
                cur.execute("UPDATE sesiones SET activo = false WHERE usuario_id = %s", (row["id"],))

    print("OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
