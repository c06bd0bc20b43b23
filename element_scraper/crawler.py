"""
Crawl controller module.
Drives a breadth-first walk over seed and discovered URLs in a single browser
session, scanning each page for variations, capturing screenshots and
collecting per-page failures.
"""

import logging
from pathlib import Path
from typing import Callable, List, Optional, Sequence
from urllib.parse import urlparse

from element_scraper.browser import BrowserSession
from element_scraper.link_discovery import LinkDiscoverer
from element_scraper.models import (
    CrawlFailure,
    CrawlOptions,
    CrawlResult,
    CrawlState,
    CrawlStats,
    ScrapeResult,
    Variation,
)
from element_scraper.page_scanner import PageScanner
from element_scraper.rate_limiter import DelayManager
from element_scraper.report import ReportGenerator
from element_scraper.screenshot import ScreenshotCapture
from element_scraper.sitemap import SitemapFetcher

logger = logging.getLogger(__name__)


class VariationCrawler:
    """Finds element variations on one page or across a crawled set of pages."""

    def __init__(self, config, session_factory: Optional[Callable[[], BrowserSession]] = None,
                 scanner: Optional[PageScanner] = None, link_discoverer: Optional[LinkDiscoverer] = None,
                 capture: Optional[ScreenshotCapture] = None, sitemap_fetcher: Optional[SitemapFetcher] = None,
                 reporter: Optional[ReportGenerator] = None, logger_instance: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger_instance or logger
        self.session_factory = session_factory or (lambda: BrowserSession(config, self.logger))
        self.scanner = scanner or PageScanner(self.logger)
        self.link_discoverer = link_discoverer or LinkDiscoverer(self.logger)
        self.capture = capture or ScreenshotCapture(config, logger_instance=self.logger)
        self.sitemap_fetcher = sitemap_fetcher or SitemapFetcher(config, self.logger)
        self.reporter = reporter or ReportGenerator(config, self.logger)

    @property
    def screenshot_dir(self) -> Path:
        return Path(self.config.output_dir) / self.config.screenshot_dir

    async def scrape(self, url: str, selector: str, variation_class_prefix: str = '') -> ScrapeResult:
        """
        Scrape a single page: scan, capture screenshots and write the report.

        Args:
            url: Page to scrape
            selector: CSS selector for candidate elements
            variation_class_prefix: Optional class prefix naming the component family

        Returns:
            ScrapeResult with the variations and report path
        """
        self.logger.info(f"🚀 Starting scrape of: {url}")
        async with self.session_factory() as session:
            await session.navigate(url)
            variations = await self.scanner.scan_page(session.page, selector, variation_class_prefix)
            await self.capture.capture_all(session.page, variations, self.screenshot_dir)

        report_path = await self.reporter.write_report(variations, url)

        self.logger.info(f"✅ Scraping completed: {len(variations)} variations")
        return ScrapeResult(variations=variations, report_path=report_path)

    async def crawl(self, start_urls: Sequence[str], selector: str, variation_class_prefix: str = '',
                    options: Optional[CrawlOptions] = None, base_url: Optional[str] = None) -> CrawlResult:
        """
        Crawl from the given seed URLs.

        Only links on the base domain (the host of ``base_url``, or of the first
        seed) are followed.

        Raises:
            ValueError: if no seed URLs are given
            Exception: the triggering page's error when ``continue_on_error`` is False
        """
        options = options or CrawlOptions.from_config(self.config)
        seeds = list(start_urls)
        if not seeds:
            raise ValueError("No start URLs given")
        base_domain = urlparse(base_url or seeds[0]).hostname

        async with self.session_factory() as session:
            result = await self._crawl_session(session, seeds, base_domain, selector, variation_class_prefix, options)
        return await self._finish(result)

    async def crawl_sitemap(self, base_url: str, selector: str, variation_class_prefix: str = '',
                            options: Optional[CrawlOptions] = None) -> CrawlResult:
        """
        Crawl a site starting from its sitemap, or from ``options.manual_urls`` when set.

        Raises:
            ValueError: if the sitemap yields no URLs
            Exception: the triggering page's error when ``continue_on_error`` is False
        """
        options = options or CrawlOptions.from_config(self.config)
        base_domain = urlparse(base_url).hostname

        self.logger.info(f"🚀 Starting sitemap scraping for: {base_url}")
        self.logger.info(f"🎯 Selector: {selector}")
        if variation_class_prefix:
            self.logger.info(f"🏷️  Class prefix filter: {variation_class_prefix}")
        if options.follow_links:
            self.logger.info(f"🔗 Link following enabled (max depth: {options.max_depth})")

        async with self.session_factory() as session:
            if options.manual_urls is not None:
                self.logger.info(f"📋 Using {len(options.manual_urls)} manual URLs")
                seeds = list(options.manual_urls)[:options.max_urls]
            else:
                seeds = await self.sitemap_fetcher.fetch_urls(
                    session.request, base_url, options.max_urls,
                    options.include_patterns, options.exclude_patterns,
                )

            if not seeds:
                raise ValueError("No URLs found in sitemap or after filtering")

            self.logger.info(f"📄 Will scrape {len(seeds)} initial pages")
            result = await self._crawl_session(session, seeds, base_domain, selector, variation_class_prefix, options)
        return await self._finish(result)

    async def _crawl_session(self, session: BrowserSession, seeds: List[str], base_domain: str, selector: str,
                             variation_class_prefix: str, options: CrawlOptions) -> CrawlResult:
        state = CrawlState(queue=list(seeds))
        delay_manager = DelayManager(options.delay_between_pages)

        while state.has_pending(options.max_urls):
            url = state.next_url()
            if url in state.visited:
                continue

            state.visited.add(url)
            state.processed_count += 1
            self.logger.info(
                f"--- Page {state.processed_count}/"
                f"{min(len(state.queue) + state.processed_count, options.max_urls)}: {url} ---"
            )

            try:
                await self._process_page(session, url, selector, variation_class_prefix, state)
            except Exception as e:
                self.logger.error(f"❌ Error scraping {url}: {e}")
                state.failures.append(CrawlFailure(url=url, error=str(e)))
                if not options.continue_on_error:
                    raise
                continue

            if options.follow_links and state.processed_count < options.max_depth:
                await self._enqueue_links(session, state, base_domain, options)

            if state.has_pending(options.max_urls) and options.delay_between_pages > 0:
                await delay_manager.wait_between_pages()

        stats = CrawlStats(
            total_pages=len(seeds),
            successful_pages=len(seeds) - len(state.failures),
            total_variations=len(state.variations),
            processed_pages=state.processed_count,
        )
        return CrawlResult(
            variations=state.variations,
            failed_urls=state.failures,
            stats=stats,
            scraped_urls=list(seeds),
        )

    async def _process_page(self, session: BrowserSession, url: str, selector: str,
                            variation_class_prefix: str, state: CrawlState) -> List[Variation]:
        await session.navigate(url)
        variations = await self.scanner.scan_page(session.page, selector, variation_class_prefix)

        if not variations:
            self.logger.info("ℹ️  No variations found on this page")
            return variations

        self.logger.info(f"✅ Found {len(variations)} variations on this page")
        await self.capture.capture_all(
            session.page, variations, self.screenshot_dir,
            name_prefix=f"page{state.processed_count}_element",
        )

        offset = len(state.variations)
        for position, variation in enumerate(variations):
            variation.page_url = url
            variation.page_index = state.processed_count
            variation.global_index = offset + position
        state.variations.extend(variations)
        return variations

    async def _enqueue_links(self, session: BrowserSession, state: CrawlState, base_domain: str,
                             options: CrawlOptions) -> None:
        try:
            new_links = await self.link_discoverer.discover_links(
                session.page, base_domain, state.visited,
                options.include_patterns, options.exclude_patterns,
            )
        except Exception as e:
            self.logger.warning(f"⚠️  Failed to discover links: {e}")
            return

        remaining_slots = max(0, options.max_urls - state.processed_count - len(state.queue))
        links_to_add = new_links[:remaining_slots]
        state.queue.extend(links_to_add)
        if links_to_add:
            self.logger.info(f"📝 Added {len(links_to_add)} links to crawl queue")

    async def _finish(self, result: CrawlResult) -> CrawlResult:
        self.logger.info("📄 Generating consolidated report...")
        result.report_path = await self.reporter.write_sitemap_report(
            result.variations, result.failed_urls, result.stats,
        )

        stats = result.stats
        self.logger.info(f"🎉 Crawl completed: {stats.total_variations} variations")
        self.logger.info(f"✅ Successful pages: {stats.successful_pages}/{stats.total_pages} ({stats.processed_pages} processed)")
        for failure in result.failed_urls:
            self.logger.info(f"   - {failure.url}: {failure.error}")
        return result
