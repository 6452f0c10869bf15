import unittest
from unittest import mock

from factfeed.sources.registry import (
    SourceRegistryClient,
    default_news_sources,
    parse_news_sources,
    source_urls,
)


class TestRegistry(unittest.TestCase):
    def test_default_registry(self):
        sources = default_news_sources()
        self.assertEqual(len(sources), 25)
        self.assertEqual(len({s.id for s in sources}), 25)
        self.assertTrue(all(s.url.startswith("https://") for s in sources))

    def test_source_urls_by_category(self):
        urls = source_urls(default_news_sources(), category="Fact-Checking")
        self.assertIn("https://www.aosfatos.org", urls)
        self.assertEqual(len(urls), 5)

    def test_parse_skips_entries_without_url(self):
        parsed = parse_news_sources({"news_sources": [{"url": "https://a.com"}, {"name": "no url"}, "junk", {"url": " "}]})
        self.assertEqual([s.url for s in parsed], ["https://a.com"])
        self.assertEqual(parse_news_sources({}), [])

    def test_client_fetches_sources(self):
        session = mock.MagicMock()
        session.get.return_value.json.return_value = {"news_sources": [{"id": 1, "name": "A", "url": "https://a.com", "category": "geral"}]}
        sources = SourceRegistryClient("https://x.supabase.co/functions/v1/news-sources", api_key="k", session=session).fetch_sources()

        self.assertEqual(sources[0].name, "A")
        session.get.return_value.raise_for_status.assert_called_once()
        headers = session.get.call_args[1]["headers"]
        self.assertEqual(headers["Authorization"], "Bearer k")


if __name__ == "__main__":
    unittest.main()
