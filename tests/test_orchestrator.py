import unittest

from factfeed.crawl.orchestrator import CrawlOrchestrator, build_orchestrator
from factfeed.config import CrawlSettings
from factfeed.errors import ConfigurationFailure, CrawlFetchFailure, CrawlStartFailure, PersistenceFailure
from factfeed.ingestion.crawl_types import CrawlJob, RawDocument


def _doc(url, title=None, markdown="some words here"):
    return RawDocument(markdown=markdown, metadata={"sourceURL": url, "title": title})


class FakeCrawler:
    """Maps source url -> list of documents, or an exception to raise."""

    def __init__(self, plan, fetch_errors=None):
        self.plan = plan
        self.fetch_errors = fetch_errors or {}
        self.started = []

    def start_job(self, source_url, limit):
        self.started.append((source_url, limit))
        outcome = self.plan.get(source_url, [])
        if isinstance(outcome, Exception):
            raise outcome
        return CrawlJob(id=f"job-{len(self.started)}", source_url=source_url)

    def fetch_all(self, job):
        if job.source_url in self.fetch_errors:
            raise self.fetch_errors[job.source_url]
        return list(self.plan.get(job.source_url, []))


class InMemoryWriter:
    """Store double with url-keyed upsert semantics."""

    def __init__(self, fail_for=None):
        self.items = {}
        self.batches = []
        self.fail_for = fail_for or set()

    def upsert_news_items(self, rows):
        if any(r.source in self.fail_for for r in rows):
            raise PersistenceFailure("rejected", row_count=len(rows))
        self.batches.append(list(rows))
        for r in rows:
            self.items[r.url] = r
        return len(rows)


class TestCrawlOrchestrator(unittest.TestCase):
    def test_counts_processed_before_dedup(self):
        crawler = FakeCrawler(
            {
                "https://a.com/": [
                    _doc("https://a.com/1", "one"),
                    _doc("https://a.com/2"),
                    _doc("https://a.com/1", "one again"),
                    _doc("relative/path"),
                ]
            }
        )
        writer = InMemoryWriter()
        report = CrawlOrchestrator(crawler, writer, default_sources=[]).run(["https://a.com/"], 10)

        self.assertTrue(report.success)
        self.assertEqual(report.to_dict()["results"], [{"source": "https://a.com/", "inserted": 2, "processed": 3, "errors": 0}])
        self.assertEqual(writer.items["https://a.com/1"].title, "one again")

    def test_failing_source_is_isolated(self):
        crawler = FakeCrawler(
            {
                "https://a.com/": [_doc("https://a.com/1")],
                "https://b.com/": CrawlStartFailure("no job id"),
                "https://c.com/": [_doc("https://c.com/1"), _doc("https://c.com/2")],
            }
        )
        writer = InMemoryWriter()
        report = CrawlOrchestrator(crawler, writer, default_sources=[]).run(
            ["https://a.com/", "https://b.com/", "https://c.com/"], 10
        )

        self.assertEqual(
            report.to_dict(),
            {
                "success": True,
                "results": [
                    {"source": "https://a.com/", "inserted": 1, "processed": 1, "errors": 0},
                    {"source": "https://b.com/", "inserted": 0, "processed": 0, "errors": 1},
                    {"source": "https://c.com/", "inserted": 2, "processed": 2, "errors": 0},
                ],
            },
        )
        self.assertEqual(report.failed_sources, ["https://b.com/"])

    def test_fetch_failure_keeps_job_id_in_diagnostics(self):
        crawler = FakeCrawler({"https://a.com/": []}, fetch_errors={"https://a.com/": CrawlFetchFailure("timeout")})
        report = CrawlOrchestrator(crawler, InMemoryWriter(), default_sources=[]).run(["https://a.com/"])
        entry = report.to_dict(include_diagnostics=True)["results"][0]
        self.assertEqual(entry["errors"], 1)
        self.assertEqual(entry["job_id"], "job-1")
        self.assertIn("CrawlFetchFailure", entry["error"])

    def test_unexpected_exception_is_isolated(self):
        crawler = FakeCrawler({"https://a.com/": [_doc("https://a.com/1")]}, fetch_errors={"https://b.com/": KeyError("data")})
        report = CrawlOrchestrator(crawler, InMemoryWriter(), default_sources=[]).run(["https://b.com/", "https://a.com/"])
        self.assertEqual([r.errors for r in report.results], [1, 0])
        self.assertEqual(report.results[1].inserted, 1)

    def test_empty_job_reports_zeros(self):
        writer = InMemoryWriter()
        report = CrawlOrchestrator(FakeCrawler({"https://a.com/": []}), writer, default_sources=[]).run(["https://a.com/"])
        self.assertEqual(report.to_dict()["results"], [{"source": "https://a.com/", "inserted": 0, "processed": 0, "errors": 0}])
        self.assertEqual(writer.batches, [])

    def test_persistence_failure_counts_batch(self):
        crawler = FakeCrawler({"https://a.com/": [_doc("https://a.com/1"), _doc("https://a.com/2"), _doc("https://a.com/2")]})
        writer = InMemoryWriter(fail_for={"a.com"})
        report = CrawlOrchestrator(crawler, writer, default_sources=[]).run(["https://a.com/"])
        self.assertEqual(report.to_dict()["results"], [{"source": "https://a.com/", "inserted": 0, "processed": 3, "errors": 2}])

    def test_defaults_and_limit_clamping(self):
        crawler = FakeCrawler({})
        orchestrator = CrawlOrchestrator(crawler, InMemoryWriter(), default_sources=["https://d1.com/", "https://d2.com/"])

        orchestrator.run(None, 500)
        self.assertEqual(crawler.started, [("https://d1.com/", 50), ("https://d2.com/", 50)])

        crawler.started.clear()
        orchestrator.run([], 0)
        self.assertEqual(crawler.started, [("https://d1.com/", 10), ("https://d2.com/", 10)])

    def test_rerun_updates_in_place(self):
        crawler = FakeCrawler({"https://a.com/": [_doc("https://a.com/1", "old")]})
        writer = InMemoryWriter()
        orchestrator = CrawlOrchestrator(crawler, writer, default_sources=[])
        orchestrator.run(["https://a.com/"])
        crawler.plan["https://a.com/"] = [_doc("https://a.com/1", "new")]
        orchestrator.run(["https://a.com/"])

        self.assertEqual(list(writer.items), ["https://a.com/1"])
        self.assertEqual(writer.items["https://a.com/1"].title, "new")

    def test_worker_pool_keeps_order_and_isolation(self):
        plan = {f"https://s{i}.com/": [_doc(f"https://s{i}.com/{j}") for j in range(i)] for i in range(6)}
        plan["https://s3.com/"] = RuntimeError("boom")
        report = CrawlOrchestrator(FakeCrawler(plan), InMemoryWriter(), default_sources=[], max_workers=4).run(list(plan))

        self.assertEqual([r.source for r in report.results], list(plan))
        self.assertEqual([r.inserted for r in report.results], [0, 1, 2, 0, 4, 5])
        self.assertEqual([r.errors for r in report.results], [0, 0, 0, 1, 0, 0])
        self.assertEqual(report.total_inserted, 12)


class TestBuildOrchestrator(unittest.TestCase):
    def test_missing_api_key_is_configuration_failure(self):
        settings = CrawlSettings.from_env({"PG_DSN": "dbname=x"})
        with self.assertRaises(ConfigurationFailure):
            build_orchestrator(settings)

    def test_missing_store_is_configuration_failure(self):
        settings = CrawlSettings.from_env({"FIRECRAWL_API_KEY": "fc-key"})
        with self.assertRaises(ConfigurationFailure):
            build_orchestrator(settings)

    def test_uses_settings(self):
        settings = CrawlSettings.from_env({"FIRECRAWL_API_KEY": "fc-key", "CRAWL_DEFAULT_SOURCES": "https://x.com/", "CRAWL_MAX_WORKERS": "3"})
        orchestrator = build_orchestrator(settings, writer=InMemoryWriter())
        self.assertEqual(orchestrator.default_sources, ["https://x.com/"])
        self.assertEqual(orchestrator.max_workers, 3)
        self.assertEqual(orchestrator.crawler.api_key, "fc-key")


if __name__ == "__main__":
    unittest.main()
