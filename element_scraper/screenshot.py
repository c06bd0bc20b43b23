"""
Screenshot capture module.

Captures one image per variation by trying an ordered list of capture
strategies. Each strategy returns True when it saved an image and False when it
does not apply; an exception from a strategy counts as a failure and the next
one is tried.
"""

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from playwright.async_api import Locator, Page

from element_scraper.models import BoundingBox, Variation
from element_scraper.overlays import FloatingElementRemover

logger = logging.getLogger(__name__)

MIN_CLIP_SIZE = 10
MIN_CLIP_HEIGHT = 200
TALL_ELEMENT_HEIGHT = 800
CONSERVATIVE_MIN_HEIGHT = 1000
CONSERVATIVE_MAX_HEIGHT = 800
SCROLL_OFFSET = 100

CONTENT_BOUNDS_SCRIPT = """
(el) => {
    const contentElements = el.querySelectorAll(
        'img, p, h1, h2, h3, h4, h5, h6, div:not(:empty), section, article, .wp-block-group, .wp-block-column'
    );
    let minX = Infinity, minY = Infinity, maxX = 0, maxY = 0;
    let hasContent = false;

    contentElements.forEach((node) => {
        const rect = node.getBoundingClientRect();
        const style = window.getComputedStyle(node);
        const meaningful = (node.textContent || '').trim().length > 5 ||
            node.tagName === 'IMG' || node.querySelector('img');
        if (rect.width > 10 && rect.height > 10 && style.display !== 'none' &&
            style.visibility !== 'hidden' && meaningful) {
            minX = Math.min(minX, rect.left);
            minY = Math.min(minY, rect.top);
            maxX = Math.max(maxX, rect.right);
            maxY = Math.max(maxY, rect.bottom);
            hasContent = true;
        }
    });

    if (!hasContent) {
        const rect = el.getBoundingClientRect();
        return {x: rect.left, y: rect.top, width: Math.min(rect.width, 900), height: Math.min(rect.height, 800)};
    }
    return {x: minX, y: minY, width: maxX - minX, height: Math.min(maxY - minY, 1000)};
}
"""

SCROLLED_BOUNDS_SCRIPT = """
(el) => {
    const rect = el.getBoundingClientRect();
    return {x: rect.left, y: rect.top, width: Math.min(rect.width, 900), height: Math.min(rect.height, 600)};
}
"""


def padded_clip(box: Optional[BoundingBox], viewport: Dict[str, int], padding: int = 10) -> Optional[Dict[str, int]]:
    """
    Clip region around an element with padding, kept inside the viewport width.

    Returns None when there is no usable box or the clip would be degenerate
    or overflow the viewport.
    """
    if box is None or box.width <= 0 or box.height <= 0:
        return None

    viewport_width = viewport['width']
    x = max(0, math.floor(box.x - padding))
    y = max(0, math.floor(box.y - padding))
    width = min(viewport_width - x, min(math.ceil(box.width + padding * 2), viewport_width - 10))
    height = min(math.ceil(box.height + padding * 2), max(MIN_CLIP_HEIGHT, box.height + 40))
    clip = {'x': x, 'y': y, 'width': width, 'height': math.ceil(height)}

    if clip['width'] > MIN_CLIP_SIZE and clip['height'] > MIN_CLIP_SIZE and x + width <= viewport_width:
        return clip
    return None


def conservative_clip(box: Optional[BoundingBox], viewport: Dict[str, int]) -> Optional[Dict[str, int]]:
    """Top portion of a very tall element, height capped at 800px."""
    if box is None or box.height <= CONSERVATIVE_MIN_HEIGHT:
        return None
    return {
        'x': max(0, math.floor(box.x)),
        'y': max(0, math.floor(box.y)),
        'width': min(math.ceil(box.width), viewport['width'] - 20),
        'height': min(CONSERVATIVE_MAX_HEIGHT, math.ceil(box.height)),
    }


def bounds_to_clip(bounds: Dict[str, float]) -> Dict[str, int]:
    return {
        'x': max(0, math.floor(bounds['x'])),
        'y': max(0, math.floor(bounds['y'])),
        'width': math.ceil(bounds['width']),
        'height': math.ceil(bounds['height']),
    }


@dataclass
class CaptureTarget:
    """Everything a strategy needs to capture one element."""

    page: Page
    locator: Locator
    path: str
    box: Optional[BoundingBox]
    viewport: Dict[str, int]
    timeout_ms: float = 15000


class CaptureStrategy:
    name = 'base'

    async def capture(self, target: CaptureTarget) -> bool:
        raise NotImplementedError

    async def _clip_screenshot(self, target: CaptureTarget, clip: Dict[str, int]) -> None:
        await target.page.screenshot(
            path=target.path,
            clip=clip,
            timeout=target.timeout_ms,
            type='png',
            animations='disabled',
        )


class DirectClipStrategy(CaptureStrategy):
    name = 'direct clip'

    def __init__(self, padding: int = 10):
        self.padding = padding

    async def capture(self, target: CaptureTarget) -> bool:
        clip = padded_clip(target.box, target.viewport, self.padding)
        if clip is None:
            return False
        await self._clip_screenshot(target, clip)
        return True


class ConservativeClipStrategy(CaptureStrategy):
    name = 'conservative clip'

    async def capture(self, target: CaptureTarget) -> bool:
        clip = conservative_clip(target.box, target.viewport)
        if clip is None:
            return False
        await self._clip_screenshot(target, clip)
        return True


class ContentAwareClipStrategy(CaptureStrategy):
    """Crop to the union of the element's visible, meaningful descendants."""

    name = 'content-aware clip'

    def __init__(self, scroll_settle_delay: float = 1.0):
        self.scroll_settle_delay = scroll_settle_delay

    async def capture(self, target: CaptureTarget) -> bool:
        bounds = await target.locator.evaluate(CONTENT_BOUNDS_SCRIPT)
        if not bounds or bounds['width'] <= 0 or bounds['height'] <= 0:
            return False

        await target.page.evaluate(
            "(top) => window.scrollTo({top: top, behavior: 'instant'})",
            max(0, bounds['y'] - SCROLL_OFFSET),
        )
        await asyncio.sleep(self.scroll_settle_delay)

        scrolled = await target.locator.evaluate(SCROLLED_BOUNDS_SCRIPT)
        if not scrolled or not 0 <= scrolled['y'] < target.viewport['height']:
            return False

        await self._clip_screenshot(target, bounds_to_clip(scrolled))
        return True


class ElementStrategy(CaptureStrategy):
    name = 'element'

    async def capture(self, target: CaptureTarget) -> bool:
        await target.locator.screenshot(
            path=target.path,
            timeout=target.timeout_ms,
            type='png',
            animations='disabled',
        )
        return True


def default_strategies(config: Any) -> List[CaptureStrategy]:
    return [
        DirectClipStrategy(padding=config.screenshot_padding),
        ConservativeClipStrategy(),
        ContentAwareClipStrategy(scroll_settle_delay=config.scroll_settle_delay),
        ElementStrategy(),
    ]


class ScreenshotCapture:
    """Saves a screenshot for each variation on the current page."""

    def __init__(self, config, strategies: Optional[Sequence[CaptureStrategy]] = None,
                 overlays: Optional[FloatingElementRemover] = None,
                 logger_instance: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger_instance or logger
        self.strategies = list(strategies) if strategies is not None else default_strategies(config)
        self.overlays = overlays or FloatingElementRemover(self.logger)

    async def run_strategies(self, target: CaptureTarget, label: str = '') -> Optional[str]:
        """
        Try each strategy in order until one saves an image.

        Returns:
            Name of the strategy that succeeded, or None if all failed
        """
        for strategy in self.strategies:
            try:
                if await strategy.capture(target):
                    self.logger.debug(f"Captured {label} using {strategy.name}")
                    return strategy.name
                self.logger.debug(f"{strategy.name} not applicable for {label}")
            except Exception as e:
                self.logger.info(f"{strategy.name} failed for {label}: {e}")
        return None

    async def _prepare(self, page: Page, locator: Locator) -> Optional[BoundingBox]:
        """Scroll the element into view, hide overlays and return its settled bounding box."""
        box = BoundingBox.from_dict(await locator.bounding_box())

        try:
            await locator.scroll_into_view_if_needed(timeout=self.config.visibility_timeout * 1000)
        except Exception as e:
            self.logger.debug(f"scroll_into_view_if_needed failed: {e}")

        if box and box.height > TALL_ELEMENT_HEIGHT:
            await page.evaluate(
                "(top) => window.scrollTo({top: top, behavior: 'instant'})",
                box.y - SCROLL_OFFSET,
            )
            await asyncio.sleep(self.config.scroll_settle_delay)

        await self.overlays.hide_sticky_overlays(page)
        await asyncio.sleep(self.config.post_cleanup_delay)

        return BoundingBox.from_dict(await locator.bounding_box())

    async def capture_variation(self, page: Page, variation: Variation, screenshot_dir: Path,
                                name_prefix: str = 'element') -> Optional[str]:
        """
        Capture one variation and set its ``screenshot_path`` on success.

        Returns:
            Saved file name, or None if the element was not visible or every strategy failed
        """
        selector = variation.actual_selector or variation.selector
        locator = page.locator(selector).first
        label = f"element {variation.index}"
        self.logger.debug(f"Taking screenshot with selector: {selector}")

        try:
            await locator.wait_for(state='visible', timeout=self.config.visibility_timeout * 1000)
        except Exception:
            self.logger.info(f"Skipping screenshot for {label}: element not visible")
            return None

        final_box = await self._prepare(page, locator)
        screenshot_name = f"{name_prefix}_{variation.index}_{int(time.time() * 1000)}.png"
        target = CaptureTarget(
            page=page,
            locator=locator,
            path=str(Path(screenshot_dir) / screenshot_name),
            box=final_box,
            viewport=page.viewport_size or self.config.viewport,
            timeout_ms=self.config.screenshot_timeout * 1000,
        )

        if await self.run_strategies(target, label) is None:
            self.logger.warning(f"⚠️ All capture strategies failed for {label}, skipping")
            return None

        variation.screenshot_path = screenshot_name
        self.logger.info(f"📸 Screenshot saved: {screenshot_name}")
        return screenshot_name

    async def capture_all(self, page: Page, variations: List[Variation], screenshot_dir: Path,
                          name_prefix: str = 'element') -> int:
        """
        Capture screenshots for up to ``max_screenshots_per_page`` variations.

        A failure on one variation never stops the others.

        Returns:
            Number of screenshots saved
        """
        Path(screenshot_dir).mkdir(parents=True, exist_ok=True)
        limit = min(len(variations), self.config.max_screenshots_per_page)
        self.logger.info(f"📸 Taking screenshots for {limit} variations (limited from {len(variations)} total)")

        saved = 0
        for variation in variations[:limit]:
            try:
                if await self.capture_variation(page, variation, screenshot_dir, name_prefix):
                    saved += 1
            except Exception as e:
                self.logger.warning(f"⚠️ Error taking screenshot for variation {variation.index}: {e}")
        return saved
