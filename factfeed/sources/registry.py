"""News source registry.

The built-in registry is what the news-sources endpoint serves; the crawl
fallback list is the smaller set of general news homepages crawled when a
request names no sources. SourceRegistryClient reads a remote registry with
the same ``{news_sources: [...]}`` shape.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

import requests

from factfeed.ingestion.crawl_types import SourceDescriptor


DEFAULT_CRAWL_SOURCES: tuple[str, ...] = (
    "https://www.folha.uol.com.br/",
    "https://www.nytimes.com/",
    "https://www.bbc.com/news",
    "https://g1.globo.com/",
    "https://noticias.uol.com.br/",
    "https://www.poder360.com.br/",
    "https://www.reuters.com/",
    "https://www.theguardian.com/international",
)

# (id, name, url, rss, category)
_REGISTRY = [
    (1, "G1", "https://g1.globo.com", "https://g1.globo.com/dynamo/rss2.xml", "geral"),
    (2, "Folha de S.Paulo", "https://www.folha.uol.com.br", "https://feeds.folha.uol.com.br/emcimadahora/rss091.xml", "geral"),
    (3, "Estadão", "https://www.estadao.com.br", "https://www.estadao.com.br/rss/", "geral"),
    (4, "BBC Brasil", "https://www.bbc.com/portuguese", "https://feeds.bbci.co.uk/portuguese/rss.xml", "internacional"),
    (5, "CNN Brasil", "https://www.cnnbrasil.com.br", None, "geral"),
    (6, "UOL Notícias", "https://noticias.uol.com.br", "https://www.uol.com.br/feed/noticias.xml", "geral"),
    (7, "TechCrunch", "https://techcrunch.com", "https://techcrunch.com/feed/", "tecnologia"),
    (8, "The Verge", "https://www.theverge.com", "https://www.theverge.com/rss/index.xml", "tecnologia"),
    (9, "Reuters", "https://www.reuters.com", "https://www.reutersagency.com/feed/?best-sectors=general-news", "internacional"),
    (10, "Agência Brasil", "https://agenciabrasil.ebc.com.br", "https://agenciabrasil.ebc.com.br/rss/geral/feed.xml", "geral"),
    (11, "Valor Econômico", "https://valor.globo.com", "https://valor.globo.com/rss/", "economia"),
    (12, "Exame", "https://exame.com", "https://exame.com/feed/", "economia"),
    (13, "InfoMoney", "https://www.infomoney.com.br", "https://www.infomoney.com.br/feed/", "economia"),
    (14, "Carta Capital", "https://www.cartacapital.com.br", None, "politica"),
    (15, "O Antagonista", "https://www.oantagonista.com", "https://oantagonista.com/feed/", "politica"),
    (16, "Gazeta do Povo", "https://www.gazetadopovo.com.br", "https://www.gazetadopovo.com.br/rss/", "politica"),
    (17, "ESPN Brasil", "https://www.espn.com.br", None, "esportes"),
    (18, "Globo Esporte", "https://ge.globo.com", "https://ge.globo.com/rss/agenda.xml", "esportes"),
    (19, "Lance!", "https://www.lance.com.br", "https://www.lance.com.br/rss/latest.xml", "esportes"),
    (20, "Al Jazeera", "https://www.aljazeera.com", "https://www.aljazeera.com/xml/rss/all.xml", "internacional"),
    (21, "Aos Fatos", "https://www.aosfatos.org", "https://www.aosfatos.org/rss", "fact-checking"),
    (22, "Agência Lupa", "https://piaui.folha.uol.com.br/lupa", None, "fact-checking"),
    (23, "Boatos.org", "https://www.boatos.org", None, "fact-checking"),
    (24, "E-Farsas", "https://www.e-farsas.com", "https://www.e-farsas.com/feed", "fact-checking"),
    (25, "PolitiFact", "https://www.politifact.com", "https://www.politifact.com/feeds/articles/truth-o-meter/", "fact-checking"),
]


def default_news_sources() -> List[SourceDescriptor]:
    """Curated registry served by /api/news-sources."""
    return [
        SourceDescriptor(id=sid, name=name, url=url, rss=rss, category=category)
        for sid, name, url, rss, category in _REGISTRY
    ]


def _descriptor(entry: Any) -> Optional[SourceDescriptor]:
    if not isinstance(entry, dict):
        return None
    url = entry.get("url")
    if not isinstance(url, str) or not url.strip():
        return None
    sid = entry.get("id")
    return SourceDescriptor(
        url=url.strip(),
        id=sid if isinstance(sid, int) and not isinstance(sid, bool) else None,
        name=entry.get("name") or None,
        rss=entry.get("rss") or None,
        category=entry.get("category") or None,
    )


def parse_news_sources(payload: Any) -> List[SourceDescriptor]:
    entries = payload.get("news_sources") if isinstance(payload, dict) else None
    out: List[SourceDescriptor] = []
    for entry in entries or []:
        d = _descriptor(entry)
        if d is not None:
            out.append(d)
    return out


def source_urls(descriptors: Iterable[SourceDescriptor], *, category: Optional[str] = None) -> List[str]:
    cat = (category or "").strip().lower()
    return [d.url for d in descriptors if not cat or (d.category or "").lower() == cat]


class SourceRegistryClient:
    """Reads ``{news_sources: [{url, ...}]}`` from a registry endpoint."""

    def __init__(self, endpoint: str, *, api_key: Optional[str] = None, session: Optional[requests.Session] = None, timeout: float = 15.0):
        self.endpoint = endpoint
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch_sources(self) -> List[SourceDescriptor]:
        headers = {"User-Agent": "factfeed/1.0"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["apikey"] = self.api_key
        resp = self.session.get(self.endpoint, headers=headers, timeout=self.timeout)
        resp.raise_for_status()
        return parse_news_sources(resp.json() or {})
