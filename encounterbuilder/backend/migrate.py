"""Create the session settings table for the PostgreSQL session store."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from encounterbuilder.backend.config import load_settings

SCHEMA_PATH = Path(__file__).with_name("db_schema.sql")


def load_schema() -> str:
    return SCHEMA_PATH.read_text(encoding="utf-8")


def apply_schema(conn: Any, schema_sql: str) -> None:
    with conn.cursor() as cur:
        cur.execute(schema_sql)
    conn.commit()


def main() -> None:
    settings = load_settings()
    if not settings.database_url:
        raise RuntimeError("ENCOUNTERBUILDER_DATABASE_URL is required for migration")

    import psycopg

    with psycopg.connect(settings.database_url) as conn:
        apply_schema(conn, load_schema())


if __name__ == "__main__":
    main()
