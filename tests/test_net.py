import threading

import pytest
from urllib3 import exceptions as urllib3_exc

from imagecrawlerlib.metrics import Metrics
from imagecrawlerlib.net import Fetcher, FetchCancelled, FetchError
from imagecrawlerlib.rate import Throttle
from imagecrawlerlib.types import FetchResult, HttpClientProtocol


class FlakyHttp(HttpClientProtocol):
    """Fails the first `failures` requests, then answers 200."""

    def __init__(self, failures: int, mode: str = "status"):
        self.failures = failures
        self.mode = mode
        self.calls = 0

    def get(self, url: str) -> FetchResult:
        self.calls += 1
        if self.calls <= self.failures:
            if self.mode == "raise":
                raise urllib3_exc.NewConnectionError(None, "connection refused")
            return FetchResult(url=url, status=503, content_type="text/html", body=b"")
        return FetchResult(url=url, status=200, content_type="text/html", body=b"<html></html>")


def make_fetcher(http, attempts=3, delay=0.5):
    sleeps = []
    metrics = Metrics()
    fetcher = Fetcher(http, attempts, Throttle(delay, sleep=sleeps.append), metrics)
    return fetcher, sleeps, metrics


@pytest.mark.parametrize("mode", ["status", "raise"])
def test_fetch_succeeds_on_last_attempt(mode):
    http = FlakyHttp(failures=2, mode=mode)
    fetcher, sleeps, metrics = make_fetcher(http)
    res = fetcher.fetch("https://example.com/")
    assert res.status == 200
    assert http.calls == 3
    # linear backoff: delay * attempt
    assert sleeps == [0.5, 1.0]
    totals, _ = metrics.snapshot()
    assert totals.fetches == 3
    assert totals.errors == 2
    assert totals.retries == 2


def test_fetch_raises_after_all_attempts():
    http = FlakyHttp(failures=10)
    fetcher, sleeps, _ = make_fetcher(http)
    with pytest.raises(FetchError) as excinfo:
        fetcher.fetch("https://example.com/missing")
    assert excinfo.value.status == 503
    assert http.calls == 3
    assert sleeps == [0.5, 1.0]


def test_single_attempt_never_sleeps():
    http = FlakyHttp(failures=1)
    fetcher, sleeps, _ = make_fetcher(http, attempts=1)
    with pytest.raises(FetchError):
        fetcher.fetch("https://example.com/")
    assert http.calls == 1
    assert sleeps == []


def test_fetch_result_text_uses_charset():
    res = FetchResult(
        url="https://example.com/",
        status=200,
        content_type="text/html; charset=latin-1",
        body="caf\xe9".encode("latin-1"),
    )
    assert res.ok
    assert res.text == "caf\xe9"
    assert not FetchResult(url="x", status=404, content_type="", body=b"").ok


def test_fetch_stops_retrying_once_cancelled():
    stop = threading.Event()

    class StoppingHttp(HttpClientProtocol):
        calls = 0

        def get(self, url: str) -> FetchResult:
            StoppingHttp.calls += 1
            stop.set()
            return FetchResult(url=url, status=500, content_type="text/html", body=b"")

    sleeps = []
    fetcher = Fetcher(StoppingHttp(), 5, Throttle(0.5, sleep=sleeps.append, stop_event=stop))
    with pytest.raises(FetchCancelled):
        fetcher.fetch("https://example.com/")
    assert StoppingHttp.calls == 1
    assert sleeps == []


def test_fetch_records_kind():
    http = FlakyHttp(failures=0)
    fetcher, _, metrics = make_fetcher(http)
    fetcher.fetch("https://example.com/")
    fetcher.fetch("https://example.com/a.png", kind="image")
    totals, _ = metrics.snapshot()
    assert (totals.page_fetches, totals.image_fetches) == (1, 1)
