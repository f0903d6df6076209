import pytest

import analyze_images
from imagecrawlerlib.config import CrawlConfig


@pytest.mark.parametrize("seed", ["example.com", "not a url", "ftp://example.com/", "http://[::1/"])
def test_config_rejects_invalid_seed(seed):
    with pytest.raises(ValueError):
        CrawlConfig(seed_url=seed)


def test_config_defaults_and_pattern():
    cfg = CrawlConfig(seed_url="https://Example.com/blog/2024/")
    assert cfg.max_depth == 2
    assert cfg.pattern == "/blog/2024/"
    assert cfg.seed_host == "example.com"
    assert CrawlConfig(seed_url="https://example.com").pattern == "/"
    assert CrawlConfig(seed_url="https://example.com/a", url_pattern="/b/").pattern == "/b/"
    with pytest.raises(ValueError):
        CrawlConfig(seed_url="https://example.com/", max_depth=-1)


def test_main_rejects_invalid_url(capsys):
    assert analyze_images.main(["--url", "example.com"]) == 1
    assert "Error: Invalid URL provided" in capsys.readouterr().err


def test_main_rejects_negative_depth(capsys):
    assert analyze_images.main(["--url", "https://example.com/", "--depth", "-1"]) == 1
    assert "depth" in capsys.readouterr().err


def test_main_runs_crawl_and_prints_summary(monkeypatch, capsys):
    created = []

    class FakeCrawler:
        def __init__(self, config, on_page=None):
            created.append(config)
            self.metrics = None
            self.results = {}
            self.on_page = on_page

        def run(self):
            self.on_page(1, self.config_url, 0)
            return self.results

        @property
        def config_url(self):
            return created[0].seed_url

    monkeypatch.setattr(analyze_images, "Crawler", FakeCrawler)
    rc = analyze_images.main(["-u", "https://example.com/blog/", "-d", "1", "--delay", "0", "--min-size", "10"])
    out = capsys.readouterr().out
    assert rc == 0
    cfg = created[0]
    assert cfg.max_depth == 1
    assert cfg.delay_seconds == 0.0
    assert cfg.min_image_size == 10
    assert "Starting analysis of https://example.com/blog/" in out
    assert "Processing page 1..." in out
    assert "Pages Processed: 0" in out
    assert "Analysis completed in" in out


@pytest.mark.parametrize(
    "flags",
    [["--retries", "0"], ["--timeout", "0"], ["--delay", "-1"], ["--min-size", "-5"], ["--workers", "0"]],
)
def test_main_rejects_out_of_range_options(flags, capsys):
    assert analyze_images.main(["--url", "https://example.com/"] + flags) == 1
    assert capsys.readouterr().err.startswith("Error: ")


def test_main_passes_small_timeout_through(monkeypatch):
    created = []

    class FakeCrawler:
        def __init__(self, config, on_page=None):
            created.append(config)
            self.results = {}

        def run(self):
            return self.results

    monkeypatch.setattr(analyze_images, "Crawler", FakeCrawler)
    assert analyze_images.main(["-u", "https://example.com/", "--timeout", "0.2", "--retries", "1"]) == 0
    assert created[0].request_timeout == 0.2
    assert created[0].retry_attempts == 1
