import threading
import time
from dataclasses import dataclass


@dataclass
class Totals:
    page_fetches: int = 0
    image_fetches: int = 0
    page_bytes: int = 0
    image_bytes: int = 0
    errors: int = 0
    retries: int = 0
    fetch_ms_sum: float = 0.0

    @property
    def fetches(self) -> int:
        return self.page_fetches + self.image_fetches

    @property
    def bytes(self) -> int:
        return self.page_bytes + self.image_bytes


class Metrics:
    """Fetch counters shared by the page traversal and the image workers."""

    def __init__(self):
        self._totals = Totals()
        self._lock = threading.Lock()
        self._start = time.time()

    def record_fetch(self, ok: bool, bytes_read: int, fetch_ms: float, kind: str = "page") -> None:
        with self._lock:
            if kind == "image":
                self._totals.image_fetches += 1
                self._totals.image_bytes += max(0, bytes_read)
            else:
                self._totals.page_fetches += 1
                self._totals.page_bytes += max(0, bytes_read)
            if not ok:
                self._totals.errors += 1
            self._totals.fetch_ms_sum += fetch_ms

    def record_retry(self) -> None:
        with self._lock:
            self._totals.retries += 1

    def snapshot(self) -> tuple[Totals, float]:
        with self._lock:
            t = Totals(**vars(self._totals))
        elapsed = max(1e-6, time.time() - self._start)
        return t, elapsed


class StatsLogger(threading.Thread):
    daemon = True

    def __init__(self, metrics: Metrics, interval_s: float, log_fn):
        super().__init__(name="stats-logger")
        self._metrics = metrics
        self._interval = max(0.5, interval_s)
        self._log = log_fn
        self._stop = threading.Event()

    def run(self) -> None:
        while not self._stop.is_set():
            self._stop.wait(self._interval)
            if self._stop.is_set():
                break
            totals, elapsed = self._metrics.snapshot()
            self._log(
                "Perf: pages=%d, images=%d, errors=%d, retries=%d, image MB=%.2f, avg_fetch_ms=%.1f, fetches/sec=%.2f",
                totals.page_fetches,
                totals.image_fetches,
                totals.errors,
                totals.retries,
                totals.image_bytes / (1024 * 1024),
                totals.fetch_ms_sum / max(1, totals.fetches),
                totals.fetches / elapsed,
            )

    def stop(self) -> None:
        self._stop.set()
