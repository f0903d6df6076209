from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlparse


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)
DEFAULT_TRACKING_DOMAINS: Tuple[str, ...] = ("google-analytics.com", "doubleclick.net", "analytics")


@dataclass(frozen=True)
class CrawlConfig:
    seed_url: str
    max_depth: int = 2
    url_pattern: Optional[str] = None
    verbose: bool = False
    retry_attempts: int = 3
    request_timeout: float = 10.0
    delay_seconds: float = 0.5
    min_image_size: int = 1024
    tracking_domains: Tuple[str, ...] = DEFAULT_TRACKING_DOMAINS
    user_agent: str = DEFAULT_USER_AGENT
    image_workers: int = 8
    max_connections: int = 16
    metrics_interval: float = 0.0

    def __post_init__(self) -> None:
        try:
            parsed = urlparse(self.seed_url)
            host = parsed.hostname
        except ValueError:
            raise ValueError(f"Invalid URL provided: {self.seed_url}") from None
        if parsed.scheme not in ("http", "https") or not host:
            raise ValueError(f"Invalid URL provided: {self.seed_url}")
        if self.max_depth < 0:
            raise ValueError("depth must be a non-negative number")
        if self.retry_attempts < 1:
            raise ValueError("retry attempts must be at least 1")
        if self.request_timeout <= 0:
            raise ValueError("timeout must be a positive number")
        if self.delay_seconds < 0:
            raise ValueError("delay must be a non-negative number")
        if self.min_image_size < 0:
            raise ValueError("minimum image size must be a non-negative number")
        if self.image_workers < 1:
            raise ValueError("workers must be at least 1")

    @property
    def seed_host(self) -> str:
        return urlparse(self.seed_url).hostname or ""

    @property
    def pattern(self) -> str:
        """Path prefix a link must start with; the seed's own path unless overridden."""
        if self.url_pattern:
            return self.url_pattern
        return urlparse(self.seed_url).path or "/"
