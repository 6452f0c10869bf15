"""Idempotent news_items writers.

Both stores upsert on the ``url`` column: a re-crawled url replaces the
existing row's values instead of adding a second row. A rejected batch is
reported as PersistenceFailure and nothing from it is assumed written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Sequence

import psycopg

from factfeed.errors import ConfigurationFailure, PersistenceFailure
from factfeed.ingestion.crawl_types import NEWS_ITEM_COLUMNS, CanonicalRow

logger = logging.getLogger(__name__)

NEWS_ITEMS_TABLE = "news_items"

_UPDATE_COLUMNS = [c for c in NEWS_ITEM_COLUMNS if c != "url"]

UPSERT_NEWS_ITEM_SQL = f"""
INSERT INTO {NEWS_ITEMS_TABLE} ({', '.join(NEWS_ITEM_COLUMNS)})
VALUES ({', '.join(f'%({c})s' for c in NEWS_ITEM_COLUMNS)})
ON CONFLICT (url) DO UPDATE SET
  {', '.join(f'{c} = EXCLUDED.{c}' for c in _UPDATE_COLUMNS)},
  updated_at = now()
"""


@dataclass
class PostgresNewsItemStore:
    pg_dsn: str

    def _connect(self):
        return psycopg.connect(self.pg_dsn)

    def upsert_news_items(self, rows: Sequence[CanonicalRow]) -> int:
        """Upsert ``rows`` in one transaction; returns rows written."""
        if not rows:
            return 0
        records = [r.as_record() for r in rows]
        try:
            # Connection context commits on success, rolls back on error
            with self._connect() as conn:
                with conn.cursor() as cur:
                    cur.executemany(UPSERT_NEWS_ITEM_SQL, records)
        except psycopg.Error as e:
            raise PersistenceFailure(f"news_items upsert failed: {e}", row_count=len(records)) from e
        return len(records)

    def count_news_items(self) -> int:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT COUNT(*) FROM {NEWS_ITEMS_TABLE}")
                return int(cur.fetchone()[0] or 0)


@dataclass
class SupabaseNewsItemStore:
    """Upserts through a supabase-py client (PostgREST ``on_conflict``)."""

    client: Any

    def upsert_news_items(self, rows: Sequence[CanonicalRow]) -> int:
        if not rows:
            return 0
        records: List[dict] = [r.as_record() for r in rows]
        try:
            self.client.table(NEWS_ITEMS_TABLE).upsert(records, on_conflict="url").execute()
        except Exception as e:
            raise PersistenceFailure(f"news_items upsert failed: {e}", row_count=len(records)) from e
        return len(records)

    def count_news_items(self) -> int:
        res = self.client.table(NEWS_ITEMS_TABLE).select("id", count="exact").limit(1).execute()
        return int(getattr(res, "count", 0) or 0)


def build_news_item_writer(settings):
    """Pick the store from settings: Supabase when configured, else Postgres."""
    if settings.use_supabase:
        from supabase import create_client

        try:
            client = create_client(settings.supabase_url, settings.supabase_service_role_key)
        except Exception as e:
            raise ConfigurationFailure(f"Supabase client init failed: {e}") from e
        logger.info("Using Supabase news_items store")
        return SupabaseNewsItemStore(client)
    if settings.pg_dsn:
        logger.info("Using Postgres news_items store")
        return PostgresNewsItemStore(settings.pg_dsn)
    raise ConfigurationFailure("No news store configured (set SUPABASE_URL/SUPABASE_SERVICE_ROLE_KEY or PG_DSN)")
