"""
Data model for variation discovery and crawling.
Defines element snapshots, variations, crawl options, crawl state and results.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set


@dataclass
class BoundingBox:
    """Rectangle in page coordinates as reported by the browser."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['BoundingBox']:
        if not data:
            return None
        return cls(
            x=float(data.get('x', 0)),
            y=float(data.get('y', 0)),
            width=float(data.get('width', 0)),
            height=float(data.get('height', 0)),
        )

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}


@dataclass
class AnchorInfo:
    """Ids and fragment links found on or inside an element."""

    element_id: Optional[str] = None
    heading_ids: List[str] = field(default_factory=list)
    other_ids: List[str] = field(default_factory=list)
    anchor_links: List[str] = field(default_factory=list)

    def primary_anchor(self) -> Optional[str]:
        """
        Pick the id used to link back to the element on its page.

        Order: the element's own id, the first heading id, the first other id.
        Anchor links are recorded but never used here.
        """
        if self.element_id:
            return self.element_id
        if self.heading_ids:
            return self.heading_ids[0]
        if self.other_ids:
            return self.other_ids[0]
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'elementId': self.element_id,
            'headingIds': list(self.heading_ids),
            'otherIds': list(self.other_ids),
            'anchorLinks': list(self.anchor_links),
        }


@dataclass
class ImageInfo:
    src: str = ''
    alt: str = ''


@dataclass
class RawElementSnapshot:
    """Raw facts about one candidate element, read from the live DOM."""

    tag_name: str
    class_attr: str = ''
    text: str = ''
    images: List[ImageInfo] = field(default_factory=list)
    bounding_box: Optional[BoundingBox] = None
    sibling_position: int = 1
    element_id: Optional[str] = None
    heading_ids: List[str] = field(default_factory=list)
    descendant_ids: List[str] = field(default_factory=list)
    anchor_hrefs: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], bounding_box: Optional[Dict[str, Any]] = None) -> 'RawElementSnapshot':
        """Build a snapshot from the dictionary returned by the in-page extraction script."""
        images = [
            ImageInfo(src=img.get('src') or '', alt=img.get('alt') or '')
            for img in data.get('images') or []
        ]
        return cls(
            tag_name=(data.get('tagName') or '').lower(),
            class_attr=data.get('className') or '',
            text=data.get('text') or '',
            images=images,
            bounding_box=BoundingBox.from_dict(bounding_box),
            sibling_position=int(data.get('position') or 1),
            element_id=data.get('id') or None,
            heading_ids=list(data.get('headingIds') or []),
            descendant_ids=list(data.get('descendantIds') or []),
            anchor_hrefs=list(data.get('anchorHrefs') or []),
        )


@dataclass
class Variation:
    """One accepted, de-duplicated instance of the targeted selector on a page."""

    index: int
    selector: str
    actual_selector: str
    tag_name: str
    class_names: List[str]
    text_content: str
    bounding_box: Optional[BoundingBox] = None
    screenshot_path: Optional[str] = None
    anchor_info: AnchorInfo = field(default_factory=AnchorInfo)
    page_url: Optional[str] = None
    page_index: Optional[int] = None
    global_index: Optional[int] = None

    def source_url(self, fallback_url: Optional[str] = None) -> Optional[str]:
        """
        Page URL with the element's primary anchor appended, when one exists.

        ``fallback_url`` stands in for the page URL on single-page scrapes,
        where ``page_url`` is never set.
        """
        base_url = self.page_url or fallback_url
        if not base_url:
            return None
        anchor = self.anchor_info.primary_anchor() if self.anchor_info else None
        if anchor:
            return f"{base_url}#{anchor}"
        return base_url

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'index': self.index,
            'selector': self.selector,
            'actualSelector': self.actual_selector,
            'tagName': self.tag_name,
            'classNames': list(self.class_names),
            'textContent': self.text_content,
            'boundingBox': self.bounding_box.to_dict() if self.bounding_box else None,
            'screenshotPath': self.screenshot_path,
            'anchorInfo': self.anchor_info.to_dict(),
        }
        if self.page_url is not None:
            data['pageUrl'] = self.page_url
            data['pageIndex'] = self.page_index
            data['globalIndex'] = self.global_index
        return data


@dataclass
class CrawlOptions:
    max_urls: int = 10
    include_patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)
    delay_between_pages: float = 2.0
    continue_on_error: bool = True
    manual_urls: Optional[List[str]] = None
    follow_links: bool = True
    max_depth: int = 2

    @classmethod
    def from_config(cls, config: Any, **overrides: Any) -> 'CrawlOptions':
        """Build options from a ScraperConfig, with keyword overrides applied last."""
        options = cls(
            max_urls=config.max_urls,
            include_patterns=list(config.include_patterns),
            exclude_patterns=list(config.exclude_patterns),
            delay_between_pages=config.delay_between_pages,
            continue_on_error=config.continue_on_error,
            manual_urls=list(config.manual_urls) if config.manual_urls else None,
            follow_links=config.follow_links,
            max_depth=config.max_depth,
        )
        for key, value in overrides.items():
            if not hasattr(options, key):
                raise TypeError(f"Unknown crawl option: {key}")
            setattr(options, key, value)
        return options


@dataclass
class CrawlFailure:
    url: str
    error: str

    def to_dict(self) -> Dict[str, str]:
        return {'url': self.url, 'error': self.error}


@dataclass
class CrawlState:
    """
    Mutable bookkeeping for a single crawl session.

    Created when a crawl starts, mutated only by the crawler, dropped when it ends.
    """

    queue: List[str] = field(default_factory=list)
    visited: Set[str] = field(default_factory=set)
    processed_count: int = 0
    variations: List[Variation] = field(default_factory=list)
    failures: List[CrawlFailure] = field(default_factory=list)

    def next_url(self) -> str:
        return self.queue.pop(0)

    def has_pending(self, max_urls: int) -> bool:
        return bool(self.queue) and self.processed_count < max_urls


@dataclass
class CrawlStats:
    total_pages: int
    successful_pages: int
    total_variations: int
    processed_pages: int

    def to_dict(self) -> Dict[str, int]:
        return {
            'totalPages': self.total_pages,
            'successfulPages': self.successful_pages,
            'totalVariations': self.total_variations,
            'processedPages': self.processed_pages,
        }


@dataclass
class CrawlResult:
    variations: List[Variation]
    failed_urls: List[CrawlFailure]
    stats: CrawlStats
    scraped_urls: List[str] = field(default_factory=list)
    report_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'variations': [v.to_dict() for v in self.variations],
            'failedUrls': [f.to_dict() for f in self.failed_urls],
            'stats': self.stats.to_dict(),
            'scrapedUrls': list(self.scraped_urls),
            'reportPath': self.report_path,
        }


@dataclass
class ScrapeResult:
    variations: List[Variation]
    report_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'variations': [v.to_dict() for v in self.variations],
            'reportPath': self.report_path,
        }
