"""Postgres schema management for the news feed.

Schema creation is idempotent (CREATE IF NOT EXISTS) so workers can call it
on every start.
"""

from __future__ import annotations

from typing import Iterable, Optional

import psycopg


SCHEMA_STATEMENTS: list[str] = [
    # Crawled news items; url is the upsert conflict key
    """
    CREATE TABLE IF NOT EXISTS news_items (
      id BIGSERIAL PRIMARY KEY,
      url TEXT NOT NULL UNIQUE,
      title TEXT,
      summary TEXT,
      source TEXT,
      category TEXT,
      image_url TEXT,
      content_markdown TEXT,
      content_html TEXT,
      read_time INTEGER CHECK (read_time IS NULL OR read_time > 0),
      published_at TIMESTAMPTZ,
      created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_news_items_created_at ON news_items (created_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_news_items_published_at ON news_items (published_at DESC);",
    "CREATE INDEX IF NOT EXISTS idx_news_items_source ON news_items (source);",
]


def ensure_postgres_schema(pg_dsn: str, *, statements: Optional[Iterable[str]] = None) -> None:
    """Ensure Postgres schema exists."""
    stmts = list(statements) if statements is not None else SCHEMA_STATEMENTS
    with psycopg.connect(pg_dsn, autocommit=True) as conn:
        with conn.cursor() as cur:
            for s in stmts:
                cur.execute(s)
