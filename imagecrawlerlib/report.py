from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .types import PageResults


SIZE_UNITS = ("B", "KB", "MB", "GB")


def format_size(num_bytes: float) -> str:
    size = float(num_bytes)
    unit = 0
    while size >= 1024 and unit < len(SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.2f} {SIZE_UNITS[unit]}"


@dataclass
class UniqueImage:
    size: int
    width: int
    height: int
    type: str
    count: int = 1

    @property
    def dimensions(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class PageWeight:
    url: str
    count: int
    size: int


@dataclass
class Report:
    pages_processed: int = 0
    total_references: int = 0
    total_size: int = 0
    heaviest_page: Optional[PageWeight] = None
    unique_images: Dict[str, UniqueImage] = field(default_factory=dict)

    def top_images(self, n: int = 5) -> List[Tuple[str, UniqueImage]]:
        # sorted() is stable, so equal sizes keep first-seen order
        ranked = sorted(self.unique_images.items(), key=lambda item: item[1].size, reverse=True)
        return ranked[:n]

    def type_distribution(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for info in self.unique_images.values():
            counts[info.type] = counts.get(info.type, 0) + 1
        return counts


def build_report(results: PageResults) -> Report:
    """Aggregate per-page image records into crawl-wide statistics.

    Unique images are keyed by URL; the first record seen for a URL supplies
    its size, dimensions and type, and later records only bump the usage count.
    """
    report = Report(pages_processed=len(results))
    for url, images in results.items():
        page_size = sum(img.size for img in images)
        report.total_references += len(images)
        report.total_size += page_size
        if page_size > (report.heaviest_page.size if report.heaviest_page else 0):
            report.heaviest_page = PageWeight(url=url, count=len(images), size=page_size)
        for img in images:
            seen = report.unique_images.get(img.url)
            if seen is None:
                report.unique_images[img.url] = UniqueImage(
                    size=img.size, width=img.width, height=img.height, type=img.type
                )
            else:
                seen.count += 1
    return report


def render_details(results: PageResults) -> str:
    lines = ["=== Detailed Results ==="]
    for url, images in results.items():
        lines.append("")
        lines.append(f"Page: {url}")
        lines.append(f"Total Images: {len(images)}")
        lines.append(f"Total Size: {format_size(sum(img.size for img in images))}")
        for img in images:
            lines.append("")
            lines.append(f"  - {img.url}")
            lines.append(f"    Size: {format_size(img.size)}")
            lines.append(f"    Dimensions: {img.width}x{img.height}")
            lines.append(f"    Type: {img.type}")
    return "\n".join(lines)


def render_summary(report: Report, top_n: int = 5) -> str:
    lines = [
        "=== Analysis Summary ===",
        f"Pages Processed: {report.pages_processed}",
        f"Total Image References: {report.total_references}",
        f"Unique Images: {len(report.unique_images)}",
        f"Total Size of All Images: {format_size(report.total_size)}",
        "",
        "Heaviest Page:",
    ]
    heaviest = report.heaviest_page
    if heaviest is None:
        lines.append("URL: (none)")
    else:
        lines.append(f"URL: {heaviest.url}")
        lines.append(f"Number of Images: {heaviest.count}")
        lines.append(f"Total Size: {format_size(heaviest.size)}")

    lines.append("")
    lines.append(f"Top {top_n} Largest Images:")
    for url, info in report.top_images(top_n):
        lines.append("")
        lines.append(url)
        lines.append(f"Size: {format_size(info.size)}")
        lines.append(f"Dimensions: {info.dimensions}")
        lines.append(f"Type: {info.type}")
        lines.append(f"Used in {info.count} page(s)")

    lines.append("")
    lines.append("Image Types Distribution:")
    for image_type, count in report.type_distribution().items():
        lines.append(f"  {image_type}: {count} images")
    return "\n".join(lines)
