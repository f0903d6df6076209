import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Set

from .config import CrawlConfig
from .images import ImageProcessor
from .metrics import Metrics, StatsLogger
from .net import Fetcher, FetchError, HttpClient
from .parsing import Extractor, UrlTools
from .rate import Throttle
from .types import HttpClientProtocol, ImageRecord, PageResults


ProgressCallback = Callable[[int, str, int], None]


class Crawler:
    def __init__(
        self,
        config: CrawlConfig,
        http_client: HttpClientProtocol | None = None,
        sleep: Callable[[float], None] | None = None,
        on_page: Optional[ProgressCallback] = None,
    ):
        self.config = config
        self.http = http_client or HttpClient(config.user_agent, config.request_timeout, config.max_connections)
        self._stop = threading.Event()
        self.throttle = Throttle(config.delay_seconds, sleep=sleep, stop_event=self._stop)
        self.metrics = Metrics()
        self.fetcher = Fetcher(self.http, config.retry_attempts, self.throttle, self.metrics)
        self.images = ImageProcessor(config, self.fetcher)
        self.on_page = on_page
        self.visited: Set[str] = set()
        self.visited_lock = threading.Lock()
        self.results: PageResults = {}
        self.stats_thread: Optional[StatsLogger] = None

    def stop(self) -> None:
        self._stop.set()

    def _mark_visited(self, url: str) -> bool:
        key = UrlTools.strip_fragment(url)
        with self.visited_lock:
            if key in self.visited:
                return False
            self.visited.add(key)
            return True

    def _collect_images(self, refs: List[str], page_url: str) -> List[ImageRecord]:
        if not refs:
            return []
        workers = max(1, min(self.config.image_workers, len(refs)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="image") as executor:
            futures = [executor.submit(self.images.process, ref, page_url) for ref in refs]
            records: List[ImageRecord] = []
            for ref, future in zip(refs, futures):
                try:
                    record = future.result()
                except Exception:
                    logging.exception("Unexpected error processing image %s", ref)
                    continue
                if record is not None:
                    records.append(record)
        return records

    def visit(self, url: str, depth: int) -> None:
        if depth > self.config.max_depth or self._stop.is_set():
            return
        if not self._mark_visited(url):
            return
        url = UrlTools.strip_fragment(url)
        if self.on_page:
            self.on_page(len(self.visited), url, depth)

        try:
            try:
                response = self.fetcher.fetch(url)
            except FetchError as exc:
                logging.info("Error processing %s: %s", url, exc.reason)
                return
            soup = Extractor.parse(response.text)
            counts = Extractor.element_counts(soup)
            logging.info(
                "Processing %s (depth %d): img=%d, picture sources=%d, backgrounds=%d, links=%d",
                url,
                depth,
                counts["img"],
                counts["picture_source"],
                counts["background"],
                counts["links"],
            )

            self.results[url] = self._collect_images(Extractor.image_references(soup), url)

            if depth < self.config.max_depth:
                links = Extractor.links(soup, url, self.config.seed_host, self.config.pattern, self.visited)
                for link in links:
                    if self._stop.is_set():
                        break
                    self.throttle.pause()
                    self.visit(link, depth + 1)
        except Exception as exc:
            logging.info("Error processing %s: %s", url, exc)

    def run(self) -> PageResults:
        logging.info(
            "Starting crawl of %s: max depth %d, pattern %s",
            self.config.seed_url,
            self.config.max_depth,
            self.config.pattern,
        )
        if self.config.metrics_interval and self.config.metrics_interval > 0:
            self.stats_thread = StatsLogger(self.metrics, self.config.metrics_interval, logging.info)
            self.stats_thread.start()
        try:
            self.visit(self.config.seed_url, 0)
        except Exception:
            logging.exception("Error during crawl")
        finally:
            if self.stats_thread:
                self.stats_thread.stop()
        logging.info("Finished. Pages visited: %d, pages with results: %d", len(self.visited), len(self.results))
        return self.results
