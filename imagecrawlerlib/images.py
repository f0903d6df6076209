"""Image fetching, filtering and measurement."""

import io
import logging
import re
from typing import Optional, Tuple

from bs4 import BeautifulSoup
from PIL import Image, UnidentifiedImageError

from .config import CrawlConfig
from .net import Fetcher, FetchCancelled, FetchError
from .parsing import UrlTools
from .types import ImageRecord


class ImageDecodeError(Exception):
    pass


SVG_TAG_RE = re.compile(rb"<svg[\s>/]", re.IGNORECASE)
SVG_LENGTH_RE = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*(px)?\s*$")


def is_svg(data: bytes) -> bool:
    head = data[:4096]
    if head.startswith(b"\xef\xbb\xbf"):
        head = head[3:]
    # Binary formats never open with markup.
    if not head.lstrip().startswith(b"<"):
        return False
    return SVG_TAG_RE.search(head) is not None


def _svg_length(value: Optional[str]) -> Optional[float]:
    # Relative units (%, em) carry no intrinsic size.
    match = SVG_LENGTH_RE.match(value or "")
    return float(match.group(1)) if match else None


def decode_svg(data: bytes) -> Tuple[int, int, str]:
    """Size of an SVG from its root width/height, falling back to the viewBox.

    With a viewBox and only one of width/height, the other side keeps the
    viewBox aspect ratio.
    """
    soup = BeautifulSoup(data.decode("utf-8", errors="ignore"), "html.parser")
    root = soup.find("svg")
    if root is None:
        raise ImageDecodeError("no <svg> root element")
    width = _svg_length(root.get("width"))
    height = _svg_length(root.get("height"))

    view_box = None
    parts = re.split(r"[\s,]+", (root.get("viewbox") or "").strip())
    if len(parts) == 4:
        try:
            vb_width, vb_height = float(parts[2]), float(parts[3])
        except ValueError:
            vb_width = vb_height = 0.0
        if vb_width > 0 and vb_height > 0:
            view_box = (vb_width, vb_height)

    if width is None or height is None:
        if view_box is None:
            raise ImageDecodeError("SVG has no usable width/height or viewBox")
        if width is not None:
            height = width * view_box[1] / view_box[0]
        elif height is not None:
            width = height * view_box[0] / view_box[1]
        else:
            width, height = view_box
    return int(round(width)), int(round(height)), "svg"


def decode_image(data: bytes) -> Tuple[int, int, str]:
    """Return (width, height, type) read from the image header.

    The type is the lowercase format name, with "jpeg" reported as "jpg".
    SVG documents are measured from their markup since Pillow cannot read them.
    """
    if is_svg(data):
        return decode_svg(data)
    try:
        with Image.open(io.BytesIO(data)) as img:
            width, height = img.size
            fmt = (img.format or "").lower()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise ImageDecodeError(str(exc)) from exc
    if not fmt:
        raise ImageDecodeError("unknown image format")
    if fmt == "jpeg":
        fmt = "jpg"
    return width, height, fmt


class ImageProcessor:
    def __init__(self, config: CrawlConfig, fetcher: Fetcher):
        self.config = config
        self.fetcher = fetcher

    def process(self, reference: str, base_url: str) -> Optional[ImageRecord]:
        try:
            url = UrlTools.resolve(base_url, reference)
        except ValueError as exc:
            logging.warning("Error processing image %s: %s", reference, exc)
            return None
        if url is None:
            return None
        if not UrlTools.is_http(url):
            logging.debug("Skipping non-http image reference %s", reference[:80])
            return None
        if UrlTools.is_tracking(url, self.config.tracking_domains):
            logging.debug("Skipping tracking image %s", url)
            return None

        try:
            response = self.fetcher.fetch(url, kind="image")
        except FetchCancelled:
            logging.debug("Skipping %s: crawl stopped", url)
            return None
        except FetchError as exc:
            logging.warning("Error processing image %s: %s", reference, exc.reason)
            return None

        data = response.body
        if len(data) < self.config.min_image_size:
            logging.debug("Skipping %s: %d bytes is below the minimum size", url, len(data))
            return None

        try:
            width, height, fmt = decode_image(data)
        except ImageDecodeError as exc:
            logging.warning("Error processing image %s: %s", reference, exc)
            return None
        return ImageRecord(url=url, size=len(data), width=width, height=height, type=fmt)
