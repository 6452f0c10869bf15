"""Shared crawl ingestion data types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class JobStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: Any) -> "JobStatus":
        # Providers report "scraping", "pending" etc. while in flight
        s = str(value or "").strip().lower()
        if s == cls.COMPLETED.value:
            return cls.COMPLETED
        if s in (cls.FAILED.value, "cancelled"):
            return cls.FAILED
        return cls.RUNNING


@dataclass(frozen=True)
class SourceDescriptor:
    """One crawl target. Only ``url`` is required."""

    url: str
    id: Optional[int] = None
    name: Optional[str] = None
    rss: Optional[str] = None
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "rss": self.rss,
            "category": self.category,
        }


@dataclass
class CrawlJob:
    id: str
    source_url: str
    status: JobStatus = JobStatus.RUNNING


@dataclass(frozen=True)
class RawDocument:
    """One document as returned by the crawl provider (read-only)."""

    markdown: Optional[str] = None
    html: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "RawDocument":
        meta = payload.get("metadata")
        markdown = payload.get("markdown")
        html = payload.get("html")
        return cls(
            markdown=markdown if isinstance(markdown, str) else None,
            html=html if isinstance(html, str) else None,
            metadata=dict(meta) if isinstance(meta, dict) else {},
        )


NEWS_ITEM_COLUMNS = (
    "url",
    "title",
    "summary",
    "source",
    "category",
    "image_url",
    "content_markdown",
    "content_html",
    "read_time",
    "published_at",
)


@dataclass(frozen=True)
class CanonicalRow:
    """Normalized, persistable news item keyed by ``url``.

    ``category``, ``image_url`` and ``published_at`` are reserved for later
    enrichment and are never set by the crawl pipeline.
    """

    url: str
    title: Optional[str] = None
    summary: Optional[str] = None
    source: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    content_markdown: Optional[str] = None
    content_html: Optional[str] = None
    read_time: Optional[int] = None
    published_at: Optional[str] = None

    def as_record(self) -> Dict[str, Any]:
        return {col: getattr(self, col) for col in NEWS_ITEM_COLUMNS}
