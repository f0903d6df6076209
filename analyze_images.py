#!/usr/bin/env python3
import argparse
import logging
import sys
import time
from typing import List, Optional

from imagecrawlerlib.config import CrawlConfig
from imagecrawlerlib.engine import Crawler
from imagecrawlerlib.prometheus_exporter import PrometheusExporter
from imagecrawlerlib.report import build_report, render_details, render_summary


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="analyze-images",
        description="Analyze images on web pages with customizable depth and URL patterns.",
    )
    parser.add_argument("-u", "--url", required=True, help="URL to analyze.")
    parser.add_argument("-d", "--depth", type=int, default=2, help="Maximum depth for crawling.")
    parser.add_argument("-p", "--pattern", default=None, help="URL path prefix to match (e.g., /2024/). Defaults to the URL's path.")
    parser.add_argument("--delay", type=float, default=0.5, help="Delay between page requests in seconds, also the retry backoff unit.")
    parser.add_argument("--timeout", type=float, default=10.0, help="Request timeout in seconds.")
    parser.add_argument("--min-size", type=int, default=1024, help="Minimum image size in bytes to analyze.")
    parser.add_argument("--retries", type=int, default=3, help="Attempts per request before giving up.")
    parser.add_argument("--workers", type=int, default=8, help="Concurrent image fetches per page.")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Show detailed output for each page (-vv for debug logs).")
    parser.add_argument("--metrics-interval", type=float, default=0.0, help="Seconds between perf logs (0 to disable).")
    parser.add_argument("--prometheus-port", type=int, default=None, help="Serve Prometheus metrics on this port.")
    return parser.parse_args(argv)


def print_progress(count: int, url: str, depth: int) -> None:
    sys.stdout.write(f"\rProcessing page {count}...")
    sys.stdout.flush()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    log_level = logging.WARNING
    if args.verbose == 1:
        log_level = logging.INFO
    elif args.verbose >= 2:
        log_level = logging.DEBUG
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(threadName)s %(message)s",
    )

    try:
        config = CrawlConfig(
            seed_url=args.url,
            max_depth=args.depth,
            url_pattern=args.pattern,
            verbose=args.verbose > 0,
            retry_attempts=args.retries,
            request_timeout=args.timeout,
            delay_seconds=args.delay,
            min_image_size=args.min_size,
            image_workers=args.workers,
            metrics_interval=max(0.0, args.metrics_interval),
        )
    except ValueError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1

    crawler = Crawler(config, on_page=print_progress)
    exporter = None
    if args.prometheus_port:
        exporter = PrometheusExporter(crawler.metrics, port=args.prometheus_port)
        exporter.start()

    print(f"Starting analysis of {config.seed_url}")
    start = time.perf_counter()
    try:
        results = crawler.run()
    except KeyboardInterrupt:
        crawler.stop()
        logging.warning("Interrupted; reporting partial results")
        results = crawler.results
    finally:
        if exporter:
            exporter.stop()

    sys.stdout.write("\r" + " " * 50 + "\r")
    if config.verbose:
        print()
        print(render_details(results))
    print()
    print(render_summary(build_report(results)))
    print(f"\nAnalysis completed in {time.perf_counter() - start:.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
