"""
Same-domain link discovery module.
Extracts outbound links from a rendered page and keeps the ones worth crawling next.
"""

import logging
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urljoin, urlparse

from playwright.async_api import Page

logger = logging.getLogger(__name__)

SKIPPED_PREFIXES = ('#', 'mailto:', 'tel:')


def resolve_href(href: str, page_url: str, base_domain: str) -> Optional[str]:
    """
    Resolve an href to an absolute URL.

    Root-relative paths resolve against the page's scheme and the base domain;
    absolute http(s) links pass through; fragment-only, mailto: and tel: links
    are dropped; anything else resolves against the page URL.

    Returns:
        Absolute URL, or None if the href should be ignored
    """
    href = href.strip()
    if not href:
        return None
    if href.startswith('/') and not href.startswith('//'):
        scheme = urlparse(page_url).scheme or 'https'
        return f"{scheme}://{base_domain}{href}"
    if href.startswith('http'):
        return href
    if href.startswith(SKIPPED_PREFIXES):
        return None
    return urljoin(page_url, href)


def clean_url(url: str) -> str:
    return url.split('#')[0].split('?')[0]


def apply_patterns(urls: List[str], include_patterns: Sequence[str] = (), exclude_patterns: Sequence[str] = ()) -> List[str]:
    """Keep URLs containing any include pattern, then drop URLs containing any exclude pattern."""
    if include_patterns:
        urls = [url for url in urls if any(pattern in url for pattern in include_patterns)]
    if exclude_patterns:
        urls = [url for url in urls if not any(pattern in url for pattern in exclude_patterns)]
    return urls


def filter_links(hrefs: Iterable[str], page_url: str, base_domain: str, visited: Iterable[str] = (),
                 include_patterns: Sequence[str] = (), exclude_patterns: Sequence[str] = ()) -> List[str]:
    """
    Turn raw hrefs into crawlable same-domain URLs in first-seen order.

    Args:
        hrefs: Raw href attribute values in document order
        page_url: URL of the page the hrefs were read from
        base_domain: Hostname links must match exactly
        visited: URLs already crawled in this session
        include_patterns: Substrings of which at least one must appear
        exclude_patterns: Substrings of which none may appear

    Returns:
        De-duplicated list of new URLs
    """
    discovered = []
    seen = set()
    for href in hrefs:
        if not href:
            continue
        try:
            absolute_url = resolve_href(href, page_url, base_domain)
            if not absolute_url or urlparse(absolute_url).hostname != base_domain:
                continue
        except ValueError:
            continue
        url = clean_url(absolute_url)
        if url not in seen:
            seen.add(url)
            discovered.append(url)

    visited = set(visited)
    new_links = [url for url in discovered if url not in visited]
    return apply_patterns(new_links, include_patterns, exclude_patterns)


class LinkDiscoverer:
    """Best-effort discovery of same-domain links on the current page."""

    def __init__(self, logger_instance: Optional[logging.Logger] = None):
        self.logger = logger_instance or logger

    async def _extract_hrefs(self, page: Page) -> List[str]:
        return await page.eval_on_selector_all(
            'a[href]',
            "(anchors) => anchors.map((a) => a.getAttribute('href') || '')"
        )

    async def discover_links(self, page: Page, base_domain: str, visited: Iterable[str],
                             include_patterns: Sequence[str] = (), exclude_patterns: Sequence[str] = ()) -> List[str]:
        """
        Discover new same-domain links on the page.

        Never raises: any extraction failure yields an empty list.
        """
        try:
            hrefs = await self._extract_hrefs(page)
            self.logger.debug(f"🔗 Found {len(hrefs)} total links on {page.url}")
            links = filter_links(hrefs, page.url, base_domain, visited, include_patterns, exclude_patterns)
        except Exception as e:
            self.logger.warning(f"⚠️ Error discovering links: {e}")
            return []

        self.logger.info(f"🔍 Discovered {len(links)} new same-domain links on {page.url}")
        return links
