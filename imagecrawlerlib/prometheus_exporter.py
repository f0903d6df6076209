import logging
import threading
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, start_http_server

from .metrics import Metrics, Totals


logger = logging.getLogger(__name__)


class PrometheusExporter:
    def __init__(self, metrics: Metrics, port: int = 8000, registry: CollectorRegistry = REGISTRY) -> None:
        self.metrics = metrics
        self.port = port
        self.registry = registry
        self._server_thread: threading.Thread | None = None
        self._stop_event = threading.Event()

        self.page_fetches_total = Counter(
            'imagecrawler_page_fetches_total', 'Total number of page fetches', registry=registry
        )
        self.image_fetches_total = Counter(
            'imagecrawler_image_fetches_total', 'Total number of image fetches', registry=registry
        )
        self.bytes_total = Counter('imagecrawler_bytes_total', 'Total number of bytes downloaded', registry=registry)
        self.image_bytes_total = Counter(
            'imagecrawler_image_bytes_total', 'Total number of image bytes downloaded', registry=registry
        )
        self.errors_total = Counter('imagecrawler_errors_total', 'Total number of failed fetches', registry=registry)
        self.retries_total = Counter('imagecrawler_retries_total', 'Total number of fetch retries', registry=registry)
        self.fetches_per_second = Gauge(
            'imagecrawler_fetches_per_second', 'Current fetch rate in fetches per second', registry=registry
        )
        self.avg_fetch_duration_seconds = Gauge(
            'imagecrawler_avg_fetch_duration_seconds', 'Average fetch duration in seconds', registry=registry
        )

        self._last = Totals()

    def start(self) -> None:
        start_http_server(self.port, registry=self.registry)
        logger.info("Prometheus metrics server started on port %d", self.port)

        self._server_thread = threading.Thread(
            target=self._update_metrics_loop,
            name="prometheus-updater",
            daemon=True
        )
        self._server_thread.start()

    def _update_metrics_loop(self) -> None:
        while not self._stop_event.is_set():
            self._update_metrics()
            self._stop_event.wait(5.0)

    def _update_metrics(self) -> None:
        totals, elapsed = self.metrics.snapshot()
        last = self._last

        for counter, current, previous in (
            (self.page_fetches_total, totals.page_fetches, last.page_fetches),
            (self.image_fetches_total, totals.image_fetches, last.image_fetches),
            (self.bytes_total, totals.bytes, last.bytes),
            (self.image_bytes_total, totals.image_bytes, last.image_bytes),
            (self.errors_total, totals.errors, last.errors),
            (self.retries_total, totals.retries, last.retries),
        ):
            if current > previous:
                counter.inc(current - previous)

        if elapsed > 0:
            self.fetches_per_second.set(totals.fetches / elapsed)
        if totals.fetches > 0:
            self.avg_fetch_duration_seconds.set(totals.fetch_ms_sum / totals.fetches / 1000.0)

        self._last = totals

    def stop(self) -> None:
        self._stop_event.set()
        if self._server_thread:
            self._server_thread.join(timeout=2.0)
