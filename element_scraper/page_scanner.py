"""
Page scanning module.
Enumerates elements matching a selector on the rendered page, fingerprints and
filters them, and returns the accepted variations in document order.
"""

import logging
from typing import List, Optional

from playwright.async_api import ElementHandle, Page

from element_scraper.fingerprinter import fingerprint
from element_scraper.models import RawElementSnapshot, Variation
from element_scraper.variation_filter import is_variation

logger = logging.getLogger(__name__)


ELEMENT_SNAPSHOT_SCRIPT = """
(el) => {
    const parent = el.parentElement;
    const position = parent ? Array.from(parent.children).indexOf(el) + 1 : 1;

    const images = Array.from(el.querySelectorAll('img')).map((img) => ({
        src: img.src || img.getAttribute('src') || '',
        alt: img.alt || ''
    }));

    const headingIds = Array.from(
        el.querySelectorAll('h1[id], h2[id], h3[id], h4[id], h5[id], h6[id]')
    ).map((heading) => heading.id);

    const descendantIds = Array.from(el.querySelectorAll('[id]')).map((node) => node.id);

    const anchorHrefs = Array.from(el.querySelectorAll('a[href*="#"]'))
        .map((link) => link.getAttribute('href') || '');

    return {
        tagName: el.tagName,
        className: el.getAttribute('class') || '',
        text: el.textContent || '',
        images: images,
        position: position,
        id: el.id || null,
        headingIds: headingIds,
        descendantIds: descendantIds,
        anchorHrefs: anchorHrefs
    };
}
"""


class PageScanner:
    """Finds the distinct variations of a selector on the current page."""

    def __init__(self, logger_instance: Optional[logging.Logger] = None):
        self.logger = logger_instance or logger

    async def snapshot_element(self, element: ElementHandle) -> RawElementSnapshot:
        data = await element.evaluate(ELEMENT_SNAPSHOT_SCRIPT)
        box = await element.bounding_box()
        return RawElementSnapshot.from_dict(data, box)

    async def scan_page(self, page: Page, selector: str, variation_class_prefix: str = '') -> List[Variation]:
        """
        Scan the rendered page for variations of ``selector``.

        Elements that fail to snapshot are skipped. Duplicates (same fingerprint)
        and elements rejected by the class-prefix filter are dropped. The output
        keeps enumeration order.

        Args:
            page: Playwright page with the target document loaded
            selector: CSS selector for candidate elements
            variation_class_prefix: Optional class prefix naming the component family

        Returns:
            List of accepted variations
        """
        self.logger.info(f"🔎 Finding variations for selector: {selector}")
        elements = await page.query_selector_all(selector)
        self.logger.info(f"Found {len(elements)} elements matching the selector")

        variations: List[Variation] = []
        processed_elements = set()

        for index, element in enumerate(elements):
            try:
                snapshot = await self.snapshot_element(element)
                key, variation = fingerprint(snapshot, selector, index)
            except Exception as e:
                self.logger.warning(f"⚠️ Error processing element {index}: {e}")
                continue

            if key in processed_elements:
                self.logger.debug(f"Skipping duplicate element at index {index}")
                continue

            if not is_variation(variation.class_names, variation_class_prefix):
                self.logger.debug(f"Element {index} rejected by class prefix '{variation_class_prefix}': {variation.class_names}")
                continue

            processed_elements.add(key)
            variations.append(variation)

        self.logger.info(f"After deduplication: {len(variations)} unique variations found")
        return variations
