"""Crawl document normalization.

Turns one provider document into a CanonicalRow:
- canonical url from metadata.sourceURL, falling back to metadata.url (mandatory)
- source hostname derived from the canonical url (best-effort)
- read time estimated from the markdown body
"""

from __future__ import annotations

import math
from typing import Any, Iterable, List, Optional

from factfeed.ingestion.crawl_types import CanonicalRow, RawDocument
from factfeed.ingestion.url_utils import hostname_from_url, normalize_url


WORDS_PER_MINUTE = 200


def estimate_read_time(markdown: Optional[str]) -> Optional[int]:
    """Minutes to read ``markdown`` at ~200 wpm, never below 1."""
    if not markdown:
        return None
    words = len(markdown.split())
    # Half-up rounding; round() would round 2.5 down to 2
    return max(1, int(math.floor(words / WORDS_PER_MINUTE + 0.5)))


def _text_or_none(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def normalize_document(doc: RawDocument) -> Optional[CanonicalRow]:
    meta = doc.metadata or {}
    url = normalize_url(meta.get("sourceURL") or meta.get("url"))
    if not url:
        return None
    return CanonicalRow(
        url=url,
        title=_text_or_none(meta.get("title")),
        summary=_text_or_none(meta.get("description")),
        source=hostname_from_url(url),
        content_markdown=doc.markdown or None,
        content_html=doc.html or None,
        read_time=estimate_read_time(doc.markdown),
    )


def normalize_documents(docs: Iterable[RawDocument]) -> List[CanonicalRow]:
    out: List[CanonicalRow] = []
    for doc in docs:
        row = normalize_document(doc)
        if row is not None:
            out.append(row)
    return out
