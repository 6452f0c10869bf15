"""Error taxonomy for the crawl ingestion pipeline.

Per-source errors (crawl + persistence) are caught by the orchestrator and
turned into report entries. ConfigurationFailure aborts the whole run.
"""

from __future__ import annotations

from typing import Optional


class FactfeedError(Exception):
    """Base class for pipeline errors"""
    pass


class CrawlError(FactfeedError):
    """Crawl provider failure scoped to a single source."""

    def __init__(self, message: str, *, source_url: Optional[str] = None, job_id: Optional[str] = None):
        super().__init__(message)
        self.source_url = source_url
        self.job_id = job_id


class CrawlStartFailure(CrawlError):
    """Provider answered the start request without a resolvable job id."""


class CrawlFetchFailure(CrawlError):
    """Network or parse failure while polling a job."""


class CrawlTimeout(CrawlError):
    """Job did not complete within the configured poll ceiling."""


class PersistenceFailure(FactfeedError):
    """Batch upsert rejected by the store."""

    def __init__(self, message: str, *, row_count: int = 0):
        super().__init__(message)
        self.row_count = row_count


class ConfigurationFailure(FactfeedError):
    """Missing provider credentials or store connection."""
    pass
