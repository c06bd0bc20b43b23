"""
Browser session module using Playwright.
Owns the single browser/page pair of a scraping session and handles page
navigation, content stabilisation and overlay cleanup.
"""

import asyncio
import logging
from typing import Any, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright_stealth import Stealth

from element_scraper.overlays import FloatingElementRemover
from element_scraper.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


async def _apply_stealth_to_page(page: Page, config: Any = None) -> None:
    """
    Apply stealth plugin to a page (if enabled in config).

    Args:
        page: Playwright page object
        config: Optional config object to check if stealth is enabled
    """
    if config is not None and not getattr(config, 'enable_stealth', False):
        logger.debug("Stealth plugin disabled in config - skipping")
        return

    try:
        await Stealth().apply_stealth_async(page)
        logger.debug("Applied stealth plugin to page")
    except Exception as e:
        logger.warning(f"Failed to apply stealth plugin (non-critical): {e}")


class BrowserSession:
    """
    One browser, one context, one page, released exactly once.

    Use as an async context manager::

        async with BrowserSession(config) as session:
            await session.navigate(url)
    """

    def __init__(self, config, logger_instance: Optional[logging.Logger] = None,
                 rate_limiter: Optional[RateLimiter] = None):
        self.config = config
        self.logger = logger_instance or logger
        self.rate_limiter = rate_limiter or RateLimiter(getattr(config, 'max_requests_per_minute', 0))
        self.overlays = FloatingElementRemover(self.logger)
        self._playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None
        self.closed = False

    async def __aenter__(self) -> 'BrowserSession':
        try:
            await self.start()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        self.logger.info(f"🌐 Launching browser (headless={self.config.browser_headless})")
        self._playwright = await async_playwright().start()
        self.browser = await self._playwright.chromium.launch(
            headless=self.config.browser_headless,
            args=self.config.browser_args,
        )
        self.context = await self.browser.new_context(viewport=self.config.viewport)
        self.page = await self.context.new_page()
        await _apply_stealth_to_page(self.page, self.config)

    @property
    def request(self):
        """API request context sharing the page's cookies, used for sitemap fetches."""
        return self.page.request

    async def navigate(self, url: str) -> None:
        """
        Load a page and let it settle.

        Waits for DOM content, sleeps the settle delay, waits for network idle
        (a timeout there is tolerated) and removes floating elements.
        """
        self.logger.info(f"🌐 Navigating to: {url}")
        await self.rate_limiter.wait_if_needed(url)
        await self.page.goto(
            url,
            wait_until='domcontentloaded',
            timeout=self.config.navigation_timeout * 1000,
        )

        await asyncio.sleep(self.config.settle_delay)

        try:
            await self.page.wait_for_load_state('networkidle', timeout=self.config.network_idle_timeout * 1000)
        except PlaywrightTimeoutError:
            self.logger.info("Network idle timeout - continuing anyway...")

        await self.overlays.remove_floating_elements(self.page)

    async def close(self) -> None:
        """Release page, context, browser and the Playwright driver, in that order."""
        if self.closed:
            return
        self.closed = True

        for name, resource in (('page', self.page), ('context', self.context), ('browser', self.browser)):
            if resource is None:
                continue
            try:
                await resource.close()
            except Exception as e:
                self.logger.debug(f"Error closing {name}: {e}")

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                self.logger.debug(f"Error stopping Playwright: {e}")

        self.logger.info("🛑 Browser session closed")
