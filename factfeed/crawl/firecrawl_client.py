"""Firecrawl crawl-job client.

A crawl is an asynchronous job on the provider side:
- start_job() registers the crawl and resolves its job id
- fetch_all() polls the job status endpoint, following ``next`` pages first
  and waiting between polls while the job is still running

The poll loop is bounded by PollPolicy (wall clock + request count) so a job
that never reports completion surfaces as CrawlTimeout.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from factfeed.errors import CrawlFetchFailure, CrawlStartFailure, CrawlTimeout
from factfeed.ingestion.crawl_types import CrawlJob, JobStatus, RawDocument

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.firecrawl.dev/v2"
SCRAPE_FORMATS = ["markdown", "html"]


@dataclass(frozen=True)
class PollPolicy:
    """Wait schedule and ceiling for the status poll loop.

    Waits start at ``interval`` and grow by ``backoff`` up to ``max_interval``
    (backoff=1.0 gives a fixed interval).
    """

    interval: float = 3.0
    backoff: float = 1.5
    max_interval: float = 30.0
    max_wait: float = 600.0
    max_polls: int = 200

    def delay(self, attempt: int) -> float:
        return min(self.max_interval, self.interval * (self.backoff ** max(0, attempt)))


class _TransientHTTPError(Exception):
    def __init__(self, response: requests.Response):
        super().__init__(f"HTTP {response.status_code}")
        self.response = response


def _is_transient(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


# Status reads are safe to repeat
READ_RETRY_ERRORS = (requests.ConnectionError, requests.Timeout, _TransientHTTPError)
# A crawl start is not: only retry when the request never reached the provider
START_RETRY_ERRORS = (requests.ConnectionError,)


def extract_job_id(data: Any) -> Optional[str]:
    """Resolve the job id from a start response.

    Accepts ``{id}``, ``{job: {id}}`` or a status-check url (``url`` or
    ``job.url``) whose last path segment is the id.
    """
    if not isinstance(data, dict):
        return None
    job = data.get("job") if isinstance(data.get("job"), dict) else {}
    job_id = data.get("id") or job.get("id")
    if job_id:
        return str(job_id)
    url_field = data.get("url") or job.get("url")
    if isinstance(url_field, str) and url_field.strip():
        tail = url_field.strip().rstrip("/").split("/")[-1]
        return tail or None
    return None


class FirecrawlClient:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        session: Optional[requests.Session] = None,
        poll_policy: Optional[PollPolicy] = None,
        request_timeout: float = 30.0,
        request_attempts: int = 3,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.poll_policy = poll_policy or PollPolicy()
        self.request_timeout = request_timeout
        self.request_attempts = max(1, int(request_attempts))
        self._sleep = sleep
        self._clock = clock

    def status_url(self, job_id: str) -> str:
        return f"{self.base_url}/crawl/{job_id}"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": "factfeed/1.0",
        }

    def _request_once(self, method: str, url: str, **kwargs) -> requests.Response:
        resp = self.session.request(method, url, headers=self._headers(), timeout=self.request_timeout, **kwargs)
        if _is_transient(resp.status_code):
            raise _TransientHTTPError(resp)
        return resp

    def _send(self, method: str, url: str, *, retry_on=READ_RETRY_ERRORS, **kwargs) -> requests.Response:
        """One provider request, retrying the error types in ``retry_on``."""
        retrying = Retrying(
            retry=retry_if_exception_type(retry_on),
            stop=stop_after_attempt(self.request_attempts),
            wait=wait_exponential(min=1, max=8),
            sleep=self._sleep,
            reraise=True,
        )
        try:
            return retrying(self._request_once, method, url, **kwargs)
        except _TransientHTTPError as e:
            return e.response
        except requests.RequestException as e:
            raise CrawlFetchFailure(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _json(resp: requests.Response) -> Dict[str, Any]:
        try:
            data = resp.json()
        except ValueError as e:
            raise CrawlFetchFailure(f"non-JSON response (HTTP {resp.status_code})") from e
        if not isinstance(data, dict):
            raise CrawlFetchFailure(f"unexpected response shape (HTTP {resp.status_code})")
        return data

    def start_job(self, source_url: str, limit: int) -> CrawlJob:
        body = {
            "url": source_url,
            "limit": int(limit),
            "scrapeOptions": {"formats": list(SCRAPE_FORMATS)},
            # Stay on the source's own domain
            "allowExternalLinks": False,
        }
        try:
            resp = self._send("POST", f"{self.base_url}/crawl", retry_on=START_RETRY_ERRORS, json=body)
            data = self._json(resp)
        except CrawlFetchFailure as e:
            raise CrawlStartFailure(f"failed to start crawl: {e}", source_url=source_url) from e

        job_id = extract_job_id(data)
        if not job_id:
            detail = data.get("error") or data.get("message") or ""
            logger.error(f"[{source_url}] failed to start crawl (HTTP {resp.status_code}): {data}")
            raise CrawlStartFailure(
                f"failed to start crawl (HTTP {resp.status_code}){': ' + str(detail) if detail else ''}",
                source_url=source_url,
            )
        return CrawlJob(id=job_id, source_url=source_url)

    def fetch_all(self, job: CrawlJob) -> List[RawDocument]:
        """Poll ``job`` to completion and return every document page."""
        policy = self.poll_policy
        status_url = self.status_url(job.id)
        docs: List[RawDocument] = []
        next_url: Optional[str] = status_url
        started = self._clock()
        requests_made = 0
        waits = 0

        while next_url:
            if requests_made >= policy.max_polls:
                raise CrawlTimeout(
                    f"crawl {job.id} exceeded {policy.max_polls} status requests",
                    source_url=job.source_url,
                    job_id=job.id,
                )
            requests_made += 1
            try:
                resp = self._send("GET", next_url)
                if resp.status_code >= 400:
                    raise CrawlFetchFailure(f"status check failed (HTTP {resp.status_code})")
                data = self._json(resp)
            except CrawlFetchFailure as e:
                e.source_url = job.source_url
                e.job_id = job.id
                raise

            page = data.get("data")
            if isinstance(page, list):
                docs.extend(RawDocument.from_payload(d) for d in page if isinstance(d, dict))

            status = data.get("status")
            if status:
                job.status = JobStatus.parse(status)
            if job.status is JobStatus.FAILED:
                raise CrawlFetchFailure(f"crawl {job.id} reported status {status}", source_url=job.source_url, job_id=job.id)

            nxt = data.get("next")
            if isinstance(nxt, str) and nxt.strip():
                next_url = nxt.strip()
            elif status and job.status is not JobStatus.COMPLETED:
                delay = policy.delay(waits)
                elapsed = self._clock() - started
                if elapsed + delay > policy.max_wait:
                    raise CrawlTimeout(
                        f"crawl {job.id} still {status} after {elapsed:.0f}s",
                        source_url=job.source_url,
                        job_id=job.id,
                    )
                logger.debug(f"[{job.source_url}] crawl {job.id} {status}, polling again in {delay:.1f}s")
                self._sleep(delay)
                waits += 1
                next_url = status_url
            else:
                next_url = None

        job.status = JobStatus.COMPLETED
        return docs
