"""
Sitemap URL supplier.
Fetches sitemap XML through the browser's request context and returns page URLs.
"""

import logging
import xml.etree.ElementTree as ET
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urljoin

from element_scraper.link_discovery import apply_patterns

logger = logging.getLogger(__name__)

MAX_SITEMAP_FETCHES = 20


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1]


def parse_sitemap(xml_text: str) -> Tuple[List[str], List[str]]:
    """
    Parse a sitemap or sitemap index document.

    Returns:
        Tuple of (page URLs, child sitemap URLs)
    """
    root = ET.fromstring(xml_text.strip())
    is_index = _local_name(root.tag) == 'sitemapindex'

    locations = []
    for element in root.iter():
        if _local_name(element.tag) == 'loc' and element.text and element.text.strip():
            locations.append(element.text.strip())

    if is_index:
        return [], locations
    return locations, []


class SitemapFetcher:
    """Collects page URLs from a site's sitemap(s)."""

    def __init__(self, config, logger_instance: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger_instance or logger

    async def _fetch_text(self, request, url: str) -> Optional[str]:
        try:
            response = await request.get(url, timeout=self.config.sitemap_timeout * 1000)
        except Exception as e:
            self.logger.warning(f"⚠️ Could not fetch sitemap {url}: {e}")
            return None
        if not response.ok:
            self.logger.debug(f"Sitemap {url} returned HTTP {response.status}")
            return None
        return await response.text()

    async def fetch_urls(self, request, base_url: str, max_urls: int = 10,
                         include_patterns: Sequence[str] = (), exclude_patterns: Sequence[str] = ()) -> List[str]:
        """
        Fetch page URLs listed in the site's sitemap.

        Sitemap indexes are followed. URLs are de-duplicated in document order,
        include patterns apply before exclude patterns, and the result is capped
        at ``max_urls``.

        Args:
            request: Playwright APIRequestContext (or anything with an async ``get``)
            base_url: Site root used to locate the sitemap
            max_urls: Maximum number of URLs to return
            include_patterns: Substrings of which at least one must appear
            exclude_patterns: Substrings of which none may appear

        Returns:
            List of page URLs
        """
        fetched = set()
        page_urls: List[str] = []

        # The first configured path that parses wins; its child sitemaps are all followed.
        for path in self.config.sitemap_paths:
            pending = [urljoin(base_url, path)]
            found = False

            while pending and len(fetched) < MAX_SITEMAP_FETCHES:
                sitemap_url = pending.pop(0)
                if sitemap_url in fetched:
                    continue
                fetched.add(sitemap_url)

                xml_text = await self._fetch_text(request, sitemap_url)
                if not xml_text:
                    continue

                try:
                    urls, children = parse_sitemap(xml_text)
                except ET.ParseError as e:
                    self.logger.warning(f"⚠️ Invalid sitemap XML at {sitemap_url}: {e}")
                    continue

                found = True
                self.logger.info(f"🗺️  {sitemap_url}: {len(urls)} URLs, {len(children)} child sitemaps")
                for url in urls:
                    if url not in page_urls:
                        page_urls.append(url)
                pending.extend(child for child in children if child not in fetched)

            if found:
                break

        filtered = apply_patterns(page_urls, include_patterns, exclude_patterns)
        self.logger.info(f"📄 Sitemap yielded {len(filtered)} URLs after filtering (capped at {max_urls})")
        return filtered[:max_urls]
