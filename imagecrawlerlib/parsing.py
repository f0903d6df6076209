import logging
import re
from typing import Dict, Iterable, List, Optional, Set
from urllib.parse import urljoin, urldefrag, urlparse

from bs4 import BeautifulSoup


BACKGROUND_URL_RE = re.compile(r"""url\(['"]?([^'"()]+)['"]?\)""")


class UrlTools:
    @staticmethod
    def strip_fragment(url: str) -> str:
        stripped, _ = urldefrag(url)
        return stripped

    @staticmethod
    def resolve(base_url: str, ref: str) -> Optional[str]:
        """Absolute URL for ref against base_url, or None if ref is empty.

        Raises ValueError for references urllib cannot parse (e.g. a broken IPv6 host).
        """
        if not ref or not ref.strip():
            return None
        absolute = urljoin(base_url, ref.strip())
        urlparse(absolute).port  # raises ValueError on a malformed port
        return absolute

    @staticmethod
    def is_http(url: str) -> bool:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.hostname)

    @staticmethod
    def is_tracking(url: str, tracking_domains: Iterable[str]) -> bool:
        parsed = urlparse(url)
        host = parsed.hostname or ""
        return any(d in host or d in parsed.path for d in tracking_domains)

    @staticmethod
    def is_acceptable_link(url: str, seed_host: str, pattern: str, visited: Set[str]) -> bool:
        if UrlTools.strip_fragment(url) in visited:
            return False
        parsed = urlparse(url)
        if (parsed.hostname or "") != seed_host:
            return False
        return (parsed.path or "/").startswith(pattern)


class Extractor:
    @staticmethod
    def parse(html: str) -> BeautifulSoup:
        return BeautifulSoup(html, "html.parser")

    @staticmethod
    def element_counts(soup: BeautifulSoup) -> Dict[str, int]:
        return {
            "img": len(soup.select("img")),
            "picture_source": len(soup.select("picture source")),
            "background": len(soup.select('[style*="background"]')),
            "links": len(soup.select("a")),
        }

    @staticmethod
    def image_references(soup: BeautifulSoup) -> List[str]:
        """Raw image references: img src, picture source srcset entries, inline background urls."""
        refs: List[str] = []
        for img in soup.select("img[src]"):
            src = (img.get("src") or "").strip()
            if src:
                refs.append(src)
        for source in soup.select("picture source[srcset]"):
            for candidate in (source.get("srcset") or "").split(","):
                tokens = candidate.split()
                if tokens:
                    refs.append(tokens[0])
        for el in soup.select('[style*="background"]'):
            match = BACKGROUND_URL_RE.search(el.get("style") or "")
            if match and match.group(1).strip():
                refs.append(match.group(1).strip())
        return list(dict.fromkeys(refs))

    @staticmethod
    def links(soup: BeautifulSoup, page_url: str, seed_host: str, pattern: str, visited: Set[str]) -> List[str]:
        accepted: Dict[str, None] = {}
        for a in soup.find_all("a", href=True):
            href = a["href"]
            try:
                absolute = UrlTools.resolve(page_url, href)
            except ValueError as exc:
                logging.warning("Invalid URL %s: %s", href, exc)
                continue
            if absolute is None:
                continue
            absolute = UrlTools.strip_fragment(absolute)
            if UrlTools.is_acceptable_link(absolute, seed_host, pattern, visited):
                accepted[absolute] = None
        return list(accepted)
