"""Environment-driven settings for the crawl pipeline.

Values come from the process environment (``.env`` loaded by python-dotenv in
the entry points). Numeric values that fail to parse fall back to their
defaults with a warning.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from factfeed.crawl.firecrawl_client import DEFAULT_BASE_URL, FirecrawlClient, PollPolicy
from factfeed.crawl.request import DEFAULT_LIMIT, clamp_limit
from factfeed.errors import ConfigurationFailure
from factfeed.sources.registry import DEFAULT_CRAWL_SOURCES

logger = logging.getLogger(__name__)


def _env_str(env: Mapping[str, str], key: str) -> Optional[str]:
    value = (env.get(key) or "").strip()
    return value or None


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = _env_str(env, key)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Invalid {key}={raw!r}, using {default}")
        return default
    if value < 0:
        logger.warning(f"Negative {key}={raw!r}, using {default}")
        return default
    return value


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = _env_str(env, key)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid {key}={raw!r}, using {default}")
        return default


def _env_list(env: Mapping[str, str], key: str, default: List[str]) -> List[str]:
    raw = _env_str(env, key)
    if raw is None:
        return list(default)
    items = [s.strip() for s in raw.split(",") if s.strip()]
    return items or list(default)


@dataclass
class CrawlSettings:
    firecrawl_api_key: Optional[str] = None
    firecrawl_api_url: str = DEFAULT_BASE_URL
    supabase_url: Optional[str] = None
    supabase_service_role_key: Optional[str] = None
    pg_dsn: Optional[str] = None
    poll_policy: PollPolicy = field(default_factory=PollPolicy)
    request_timeout: float = 30.0
    max_workers: int = 1
    default_sources: List[str] = field(default_factory=lambda: list(DEFAULT_CRAWL_SOURCES))
    default_limit: int = DEFAULT_LIMIT
    news_sources_url: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "CrawlSettings":
        env = os.environ if env is None else env
        base = PollPolicy()
        policy = PollPolicy(
            interval=_env_float(env, "CRAWL_POLL_INTERVAL", base.interval),
            backoff=max(1.0, _env_float(env, "CRAWL_POLL_BACKOFF", base.backoff)),
            max_interval=_env_float(env, "CRAWL_POLL_MAX_INTERVAL", base.max_interval),
            max_wait=_env_float(env, "CRAWL_MAX_WAIT", base.max_wait),
            max_polls=max(1, _env_int(env, "CRAWL_MAX_POLLS", base.max_polls)),
        )
        return cls(
            firecrawl_api_key=_env_str(env, "FIRECRAWL_API_KEY"),
            firecrawl_api_url=_env_str(env, "FIRECRAWL_API_URL") or DEFAULT_BASE_URL,
            supabase_url=_env_str(env, "SUPABASE_URL"),
            supabase_service_role_key=_env_str(env, "SUPABASE_SERVICE_ROLE_KEY"),
            pg_dsn=_env_str(env, "PG_DSN"),
            poll_policy=policy,
            request_timeout=_env_float(env, "CRAWL_REQUEST_TIMEOUT", 30.0) or 30.0,
            max_workers=max(1, _env_int(env, "CRAWL_MAX_WORKERS", 1)),
            default_sources=_env_list(env, "CRAWL_DEFAULT_SOURCES", list(DEFAULT_CRAWL_SOURCES)),
            default_limit=clamp_limit(_env_int(env, "CRAWL_DEFAULT_LIMIT", DEFAULT_LIMIT)),
            news_sources_url=_env_str(env, "NEWS_SOURCES_URL"),
        )

    @property
    def use_supabase(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)

    def require_crawler(self) -> None:
        if not self.firecrawl_api_key:
            raise ConfigurationFailure("FIRECRAWL_API_KEY not set")

    def build_crawler(self, **kwargs) -> FirecrawlClient:
        self.require_crawler()
        return FirecrawlClient(
            self.firecrawl_api_key,
            base_url=self.firecrawl_api_url,
            poll_policy=self.poll_policy,
            request_timeout=self.request_timeout,
            **kwargs,
        )
