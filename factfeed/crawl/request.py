"""Parsing of the crawl invocation body ``{sources?, limit?}``."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

DEFAULT_LIMIT = 10
MAX_LIMIT = 50


def clamp_limit(value: Any, *, default: int = DEFAULT_LIMIT, maximum: int = MAX_LIMIT) -> int:
    """Per-source document limit.

    Positive numbers are capped at ``maximum``; anything missing, non-numeric
    or <= 0 falls back to ``default``.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if math.isnan(value) or value <= 0:
        return default
    if math.isinf(value):
        return maximum
    return max(1, min(int(value), maximum))


def clean_sources(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    out: List[str] = []
    for s in value:
        if isinstance(s, str) and s.strip():
            out.append(s.strip())
    return out


@dataclass(frozen=True)
class CrawlRequest:
    sources: Optional[List[str]]
    limit: int

    @classmethod
    def from_body(cls, body: Any) -> "CrawlRequest":
        """Build from a decoded JSON body; malformed bodies count as ``{}``."""
        if not isinstance(body, dict):
            body = {}
        sources = clean_sources(body.get("sources"))
        return cls(sources=sources or None, limit=clamp_limit(body.get("limit")))

    def resolve_sources(self, defaults: Sequence[str]) -> List[str]:
        return list(self.sources) if self.sources else list(defaults)
