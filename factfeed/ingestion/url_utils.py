"""URL helpers for crawl normalization and dedup."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlparse, urlunparse


ALLOWED_SCHEMES = {"http", "https"}

DEFAULT_PORTS = {
    "http": 80,
    "https": 443,
}


def normalize_url(url: Optional[str]) -> Optional[str]:
    """Return the canonical absolute form of ``url`` or None.

    - Requires an http(s) scheme and a host (relative URLs are rejected)
    - Lowercase scheme + hostname, drop the scheme's default port
    - Empty path becomes "/"
    - Query and fragment are kept as-is
    """
    if not url or not isinstance(url, str):
        return None
    try:
        p = urlparse(url.strip())
        port = p.port
    except ValueError:
        return None
    scheme = (p.scheme or "").lower()
    if scheme not in ALLOWED_SCHEMES:
        return None
    host = (p.hostname or "").strip()
    if not host:
        return None
    if ":" in host:
        host = f"[{host}]"
    netloc = host
    if port is not None and port != DEFAULT_PORTS.get(scheme):
        netloc = f"{host}:{port}"
    if p.username is not None:
        userinfo = p.username
        if p.password is not None:
            userinfo = f"{userinfo}:{p.password}"
        netloc = f"{userinfo}@{netloc}"
    path = p.path or "/"
    return urlunparse((scheme, netloc, path, p.params, p.query, p.fragment))


def hostname_from_url(url: Optional[str]) -> Optional[str]:
    """Best-effort hostname; None when it cannot be derived."""
    if not url:
        return None
    try:
        host = (urlparse(url).hostname or "").strip().lower()
    except ValueError:
        return None
    return host or None
