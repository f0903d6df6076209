import logging
import time
from typing import Optional

import urllib3
from urllib3.util.retry import Retry
from urllib3 import exceptions as urllib3_exc

from .metrics import Metrics
from .rate import Throttle
from .types import FetchResult, HttpClientProtocol


class FetchError(Exception):
    def __init__(self, url: str, reason: str, status: Optional[int] = None):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
        self.status = status


class FetchCancelled(FetchError):
    pass


class HttpClient:
    def __init__(self, user_agent: str, request_timeout: float, max_connections: int = 16):
        self.user_agent = user_agent
        self.timeout = urllib3.Timeout(total=request_timeout)
        # Retries are handled by Fetcher; urllib3 only follows redirects.
        self.http = urllib3.PoolManager(
            num_pools=8,
            maxsize=max_connections,
            headers={
                "User-Agent": user_agent,
                "Accept": "text/html,image/*,*/*;q=0.8",
                "Accept-Encoding": "gzip, deflate",
            },
            retries=Retry(total=None, connect=0, read=0, status=0, other=0, redirect=10, raise_on_status=False),
        )

    def get(self, url: str) -> FetchResult:
        response = self.http.request("GET", url, timeout=self.timeout, preload_content=True)
        return FetchResult(
            url=url,
            status=response.status,
            content_type=response.headers.get("Content-Type", "") or "",
            body=response.data or b"",
        )


class Fetcher:
    """GET with a fixed number of attempts and linear backoff between them.

    Non-2xx responses count as failures. Once the attempts are exhausted a
    FetchError is raised; callers decide how local that failure is. A set
    stop event on the throttle turns pending attempts into FetchCancelled.
    """

    def __init__(
        self,
        client: HttpClientProtocol,
        attempts: int,
        throttle: Throttle,
        metrics: Metrics | None = None,
    ):
        self.client = client
        self.attempts = attempts
        self.throttle = throttle
        self.metrics = metrics

    def _attempt(self, url: str, kind: str) -> FetchResult:
        t0 = time.perf_counter()
        try:
            response = self.client.get(url)
        except urllib3_exc.HTTPError as exc:
            self._record(kind, False, 0, t0)
            raise FetchError(url, str(exc)) from exc
        if not response.ok:
            self._record(kind, False, 0, t0)
            raise FetchError(url, f"HTTP error status {response.status}", status=response.status)
        self._record(kind, True, len(response.body), t0)
        return response

    def _record(self, kind: str, ok: bool, size: int, t0: float) -> None:
        if self.metrics is not None:
            self.metrics.record_fetch(ok, size, (time.perf_counter() - t0) * 1000.0, kind=kind)

    def fetch(self, url: str, attempt: int = 1, kind: str = "page") -> FetchResult:
        while True:
            if self.throttle.cancelled:
                raise FetchCancelled(url, "crawl stopped")
            try:
                return self._attempt(url, kind)
            except FetchError as exc:
                if attempt >= self.attempts:
                    raise
                logging.info("Retrying %s (attempt %d/%d): %s", url, attempt + 1, self.attempts, exc.reason)
                if self.metrics is not None:
                    self.metrics.record_retry()
                self.throttle.backoff(attempt)
                attempt += 1
