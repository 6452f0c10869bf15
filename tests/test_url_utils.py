import unittest

from factfeed.ingestion.url_utils import hostname_from_url, normalize_url


class TestUrlNormalization(unittest.TestCase):
    def test_lowercases_scheme_and_host(self):
        self.assertEqual(normalize_url("HTTPS://Example.COM/Path?Q=1#frag"), "https://example.com/Path?Q=1#frag")

    def test_empty_path_becomes_slash(self):
        self.assertEqual(normalize_url("https://example.com"), "https://example.com/")

    def test_drops_default_port_only(self):
        self.assertEqual(normalize_url("https://example.com:443/a"), "https://example.com/a")
        self.assertEqual(normalize_url("http://example.com:8080/a"), "http://example.com:8080/a")

    def test_rejects_relative_and_non_http(self):
        for raw in (None, "", "/news/a", "example.com/a", "mailto:someone@example.com", "javascript:alert(1)"):
            with self.subTest(raw=raw):
                self.assertIsNone(normalize_url(raw))

    def test_hostname(self):
        self.assertEqual(hostname_from_url("https://News.Example.com/a"), "news.example.com")
        self.assertIsNone(hostname_from_url(None))
        self.assertIsNone(hostname_from_url("/relative"))


if __name__ == "__main__":
    unittest.main()
