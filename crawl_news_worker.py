#!/usr/bin/env python3
"""News crawl worker.

Runs one crawl cycle (or scheduled) over the configured sources:
- sources come from NEWS_SOURCES_URL when set, else CRAWL_DEFAULT_SOURCES
- each source is crawled through Firecrawl and upserted into news_items
"""

from __future__ import annotations

import logging
import os
import time

import requests
import schedule
from dotenv import load_dotenv

from factfeed.config import CrawlSettings
from factfeed.crawl.orchestrator import build_orchestrator
from factfeed.crawl.report import RunReport
from factfeed.sources.registry import SourceRegistryClient, source_urls
from factfeed.storage.postgres_schema import ensure_postgres_schema

logger = logging.getLogger(__name__)


def _resolve_sources(settings: CrawlSettings) -> list[str]:
    if not settings.news_sources_url:
        return list(settings.default_sources)
    client = SourceRegistryClient(settings.news_sources_url, api_key=settings.supabase_service_role_key)
    category = (os.environ.get("NEWS_SOURCES_CATEGORY") or "").strip() or None
    try:
        urls = source_urls(client.fetch_sources(), category=category)
    except (requests.RequestException, ValueError) as e:
        logger.error(f"Source registry fetch failed, using default sources: {e}", exc_info=True)
        return list(settings.default_sources)
    return urls or list(settings.default_sources)


def run_once() -> RunReport:
    load_dotenv()
    settings = CrawlSettings.from_env()
    orchestrator = build_orchestrator(settings)
    if not settings.use_supabase and settings.pg_dsn:
        ensure_postgres_schema(settings.pg_dsn)

    report = orchestrator.run(_resolve_sources(settings), settings.default_limit)
    print(f"[crawl] {report.summary()}")
    for failed in report.failed_sources:
        print(f"[crawl] source with errors: {failed}")
    return report


def _run_cycle() -> None:
    try:
        run_once()
    except Exception as e:
        logger.error(f"Crawl cycle failed: {e}", exc_info=True)


def run_scheduled() -> None:
    every = int(os.environ.get("CRAWL_EVERY_MINUTES", "60"))
    schedule.every(every).minutes.do(_run_cycle)
    while True:
        schedule.run_pending()
        time.sleep(5)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    mode = (os.environ.get("INGEST_MODE") or "once").lower().strip()
    if mode in ("scheduled", "daemon"):
        run_scheduled()
    else:
        run_once()
