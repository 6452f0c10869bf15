"""Crawl job orchestration across sources.

Every source runs in isolation: start job -> poll -> normalize -> dedupe ->
upsert. A failure on one source becomes an error count on its report and
never aborts the others.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from factfeed.crawl.report import RunReport, SourceReport
from factfeed.crawl.request import DEFAULT_LIMIT, clamp_limit
from factfeed.errors import PersistenceFailure
from factfeed.ingestion.dedupe import dedupe_rows
from factfeed.ingestion.normalize import normalize_documents
from factfeed.storage.news_items import build_news_item_writer

logger = logging.getLogger(__name__)


class CrawlOrchestrator:
    """Drive one crawl run.

    ``crawler`` needs ``start_job(url, limit)`` and ``fetch_all(job)``
    (FirecrawlClient); ``writer`` needs ``upsert_news_items(rows)``
    (the news_items stores).
    """

    def __init__(self, crawler, writer, *, default_sources: Sequence[str], max_workers: int = 1):
        self.crawler = crawler
        self.writer = writer
        self.default_sources = list(default_sources)
        self.max_workers = max(1, int(max_workers))
        self._write_lock = threading.Lock()

    def run(self, sources: Optional[Sequence[str]] = None, limit: int = DEFAULT_LIMIT) -> RunReport:
        targets = list(sources) if sources else list(self.default_sources)
        limit = clamp_limit(limit)
        logger.info(f"Starting crawl for {len(targets)} sources, limit={limit}")

        report = RunReport()
        if self.max_workers == 1 or len(targets) <= 1:
            for source in targets:
                report.add(self.process_source(source, limit))
        else:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(targets))) as pool:
                # map() keeps the input order of sources
                for result in pool.map(lambda s: self.process_source(s, limit), targets):
                    report.add(result)

        logger.info(f"Crawl finished: {report.summary()}")
        return report

    def process_source(self, source: str, limit: int) -> SourceReport:
        """Crawl and store one source; never raises."""
        job_id = None
        try:
            job = self.crawler.start_job(source, limit)
            job_id = job.id
            logger.info(f"[{source}] crawl started with id {job.id}")

            docs = self.crawler.fetch_all(job)
            logger.info(f"[{source}] fetched docs: {len(docs)}")

            rows = normalize_documents(docs)
            unique_rows = dedupe_rows(rows)
            if not unique_rows:
                return SourceReport.ok(source, inserted=0, processed=len(rows), job_id=job_id)

            try:
                with self._write_lock:
                    written = self.writer.upsert_news_items(unique_rows)
            except PersistenceFailure as e:
                logger.error(f"[{source}] upsert error: {e}")
                return SourceReport.write_failed(
                    source,
                    processed=len(rows),
                    row_count=len(unique_rows),
                    error=str(e),
                    job_id=job_id,
                )
            logger.info(f"[{source}] upserted {written} of {len(rows)} rows")
            return SourceReport.ok(source, inserted=written, processed=len(rows), job_id=job_id)
        except Exception as e:
            logger.error(f"[{source}] crawl error: {e}", exc_info=True)
            result = SourceReport.failed(source, e)
            result.job_id = result.job_id or job_id
            return result


def build_orchestrator(settings, *, crawler=None, writer=None) -> CrawlOrchestrator:
    """Wire an orchestrator from CrawlSettings.

    Raises ConfigurationFailure before any source is touched when the
    provider key or the store is missing.
    """
    if crawler is None:
        crawler = settings.build_crawler()
    if writer is None:
        writer = build_news_item_writer(settings)
    return CrawlOrchestrator(
        crawler,
        writer,
        default_sources=settings.default_sources,
        max_workers=settings.max_workers,
    )
