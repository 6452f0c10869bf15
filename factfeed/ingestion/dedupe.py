"""URL-keyed dedup for a batch of normalized rows."""

from __future__ import annotations

from typing import Dict, Iterable, List

from factfeed.ingestion.crawl_types import CanonicalRow


def dedupe_rows(rows: Iterable[CanonicalRow]) -> List[CanonicalRow]:
    """Collapse rows to one per url.

    Policy: the last occurrence of a url wins (its field values are kept),
    while the row stays at the position where the url was first seen.
    A crawl can reach the same page through several internal links, and the
    store rejects a batch that touches the same conflict key twice.
    """
    by_url: Dict[str, CanonicalRow] = {}
    for row in rows:
        by_url[row.url] = row
    return list(by_url.values())
