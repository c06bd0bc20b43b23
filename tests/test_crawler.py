"""Tests for ``element_scraper.crawler`` with a fake browser session and collaborators."""

import asyncio

import pytest

import element_scraper.crawler as crawler_module
from element_scraper.config import ScraperConfig
from element_scraper.crawler import VariationCrawler
from element_scraper.models import CrawlOptions, Variation


class FakePage:
    def __init__(self):
        self.url = None


class FakeSession:
    def __init__(self, failing=()):
        self.page = FakePage()
        self.request = object()
        self.failing = set(failing)
        self.navigated = []
        self.close_count = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close_count += 1

    async def navigate(self, url):
        self.navigated.append(url)
        if url in self.failing:
            raise RuntimeError(f"navigation to {url} timed out")
        self.page.url = url


class FakeScanner:
    def __init__(self, per_page=2):
        self.per_page = per_page

    async def scan_page(self, page, selector, variation_class_prefix=""):
        return [
            Variation(
                index=i,
                selector=f"{selector}:nth-child({i + 1})",
                actual_selector=f"{selector}:nth-child({i + 1})",
                tag_name="div",
                class_names=["item"],
                text_content=page.url,
            )
            for i in range(self.per_page)
        ]


class FakeDiscoverer:
    def __init__(self, graph=None):
        self.graph = graph or {}
        self.calls = []

    async def discover_links(self, page, base_domain, visited, include_patterns=(), exclude_patterns=()):
        self.calls.append(page.url)
        return [link for link in self.graph.get(page.url, []) if link not in visited]


class FakeCapture:
    def __init__(self):
        self.prefixes = []

    async def capture_all(self, page, variations, screenshot_dir, name_prefix="element"):
        self.prefixes.append(name_prefix)
        for variation in variations:
            variation.screenshot_path = f"{name_prefix}_{variation.index}.png"
        return len(variations)


class FakeReporter:
    def __init__(self):
        self.single = []
        self.multi = []

    async def write_report(self, variations, url=None):
        self.single.append((list(variations), url))
        return "output/variations_report.html"

    async def write_sitemap_report(self, variations, failed_urls, stats):
        self.multi.append((list(variations), list(failed_urls), stats))
        return "output/sitemap_variations_report.html"


class FakeSitemapFetcher:
    def __init__(self, urls=()):
        self.urls = list(urls)
        self.calls = 0

    async def fetch_urls(self, request, base_url, max_urls=10, include_patterns=(), exclude_patterns=()):
        self.calls += 1
        return self.urls[:max_urls]


def url(path):
    return f"https://example.com/{path}"


def _make(tmp_path, session=None, graph=None, sitemap_urls=(), per_page=2):
    config = ScraperConfig()
    config.output_dir = str(tmp_path)
    session = session or FakeSession()
    parts = dict(
        session=session,
        discoverer=FakeDiscoverer(graph),
        capture=FakeCapture(),
        reporter=FakeReporter(),
        fetcher=FakeSitemapFetcher(sitemap_urls),
    )
    crawler = VariationCrawler(
        config,
        session_factory=lambda: session,
        scanner=FakeScanner(per_page),
        link_discoverer=parts["discoverer"],
        capture=parts["capture"],
        sitemap_fetcher=parts["fetcher"],
        reporter=parts["reporter"],
    )
    return crawler, parts


def _options(**overrides):
    defaults = dict(delay_between_pages=0, max_depth=10)
    defaults.update(overrides)
    return CrawlOptions(**defaults)


def test_crawl_stops_at_max_urls_and_reports_seed_count(tmp_path):
    graph = {url("a"): [url(p) for p in "bcdefg"], url("b"): [url("h"), url("i")]}
    crawler, parts = _make(tmp_path, graph=graph)

    result = asyncio.run(crawler.crawl([url("a")], ".item", options=_options(max_urls=5)))

    assert parts["session"].navigated == [url(p) for p in "abcde"]
    assert result.stats.processed_pages == 5
    assert result.stats.total_pages == 1
    assert result.stats.successful_pages == 1
    assert result.stats.total_variations == 10
    assert result.report_path == "output/sitemap_variations_report.html"
    assert parts["session"].close_count == 1


def test_crawl_never_revisits_a_url(tmp_path):
    graph = {url("a"): [url("b")], url("b"): [url("a")]}
    crawler, parts = _make(tmp_path, graph=graph)

    result = asyncio.run(crawler.crawl([url("a"), url("a"), url("b")], ".item", options=_options()))

    assert parts["session"].navigated == [url("a"), url("b")]
    assert result.stats.processed_pages == 2


def test_depth_gate_limits_link_following(tmp_path):
    graph = {url("a"): [url("b")], url("b"): [url("c")]}

    crawler, parts = _make(tmp_path, graph=graph)
    asyncio.run(crawler.crawl([url("a")], ".item", options=_options(max_depth=1)))
    assert parts["session"].navigated == [url("a")]
    assert parts["discoverer"].calls == []

    crawler, parts = _make(tmp_path, graph=graph)
    asyncio.run(crawler.crawl([url("a")], ".item", options=_options(max_depth=2)))
    assert parts["session"].navigated == [url("a"), url("b")]


def test_follow_links_disabled_only_visits_seeds(tmp_path):
    graph = {url("a"): [url("b")]}
    crawler, parts = _make(tmp_path, graph=graph)

    asyncio.run(crawler.crawl([url("a")], ".item", options=_options(follow_links=False)))

    assert parts["session"].navigated == [url("a")]


def test_continue_on_error_records_failure_and_keeps_going(tmp_path):
    session = FakeSession(failing=[url("b")])
    crawler, parts = _make(tmp_path, session=session)

    result = asyncio.run(crawler.crawl([url("a"), url("b"), url("c")], ".item", options=_options(follow_links=False)))

    assert [f.url for f in result.failed_urls] == [url("b")]
    assert "timed out" in result.failed_urls[0].error
    assert result.stats.total_pages == 3
    assert result.stats.successful_pages == 2
    assert [v.page_url for v in result.variations] == [url("a"), url("a"), url("c"), url("c")]
    assert [v.global_index for v in result.variations] == [0, 1, 2, 3]
    assert [v.page_index for v in result.variations] == [1, 1, 3, 3]
    assert parts["capture"].prefixes == ["page1_element", "page3_element"]
    _, failures, _ = parts["reporter"].multi[0]
    assert [f.url for f in failures] == [url("b")]


def test_fatal_error_aborts_and_closes_session_once(tmp_path):
    session = FakeSession(failing=[url("b")])
    crawler, parts = _make(tmp_path, session=session)

    with pytest.raises(RuntimeError, match="timed out"):
        asyncio.run(crawler.crawl(
            [url("a"), url("b"), url("c")], ".item",
            options=_options(continue_on_error=False, follow_links=False),
        ))

    assert session.navigated == [url("a"), url("b")]
    assert session.close_count == 1
    assert parts["reporter"].multi == []


def test_crawl_requires_seed_urls(tmp_path):
    crawler, parts = _make(tmp_path)

    with pytest.raises(ValueError):
        asyncio.run(crawler.crawl([], ".item", options=_options()))
    assert parts["session"].close_count == 0


def test_delay_runs_only_while_urls_remain(tmp_path, monkeypatch):
    waits = []

    class RecordingDelay:
        def __init__(self, delay):
            self.delay = delay

        async def wait_between_pages(self):
            waits.append(self.delay)

    monkeypatch.setattr(crawler_module, "DelayManager", RecordingDelay)
    crawler, _ = _make(tmp_path)

    asyncio.run(crawler.crawl(
        [url("a"), url("b"), url("c")], ".item",
        options=_options(delay_between_pages=1.5, follow_links=False),
    ))

    assert waits == [1.5, 1.5]


def test_crawl_sitemap_uses_manual_urls_capped_at_max_urls(tmp_path):
    crawler, parts = _make(tmp_path, sitemap_urls=[url("never")])
    options = _options(manual_urls=[url("x"), url("y"), url("z")], max_urls=2, follow_links=False)

    result = asyncio.run(crawler.crawl_sitemap("https://example.com/", ".item", options=options))

    assert parts["fetcher"].calls == 0
    assert parts["session"].navigated == [url("x"), url("y")]
    assert result.scraped_urls == [url("x"), url("y")]
    assert result.stats.total_pages == 2


def test_crawl_sitemap_uses_fetched_urls(tmp_path):
    crawler, parts = _make(tmp_path, sitemap_urls=[url("one"), url("two")])

    result = asyncio.run(crawler.crawl_sitemap("https://example.com/", ".item", options=_options(follow_links=False)))

    assert parts["fetcher"].calls == 1
    assert parts["session"].navigated == [url("one"), url("two")]
    assert result.stats.total_variations == 4


def test_crawl_sitemap_without_urls_fails_and_closes_session(tmp_path):
    crawler, parts = _make(tmp_path, sitemap_urls=[])

    with pytest.raises(ValueError, match="No URLs found"):
        asyncio.run(crawler.crawl_sitemap("https://example.com/", ".item", options=_options()))

    assert parts["session"].close_count == 1
    assert parts["session"].navigated == []


def test_scrape_single_page_writes_report(tmp_path):
    crawler, parts = _make(tmp_path, per_page=3)

    result = asyncio.run(crawler.scrape(url("a"), ".item", "item"))

    assert len(result.variations) == 3
    assert result.report_path == "output/variations_report.html"
    assert parts["reporter"].single[0][1] == url("a")
    assert parts["capture"].prefixes == ["element"]
    assert parts["session"].close_count == 1


class BrokenDiscoverer:
    def __init__(self):
        self.calls = 0

    async def discover_links(self, page, base_domain, visited, include_patterns=(), exclude_patterns=()):
        self.calls += 1
        raise RuntimeError("execution context was destroyed")


def test_link_discovery_failure_does_not_fail_the_page(tmp_path):
    session = FakeSession()
    discoverer = BrokenDiscoverer()
    crawler = VariationCrawler(
        ScraperConfig(),
        session_factory=lambda: session,
        scanner=FakeScanner(),
        link_discoverer=discoverer,
        capture=FakeCapture(),
        sitemap_fetcher=FakeSitemapFetcher(),
        reporter=FakeReporter(),
    )

    result = asyncio.run(crawler.crawl([url("a"), url("b")], ".item", options=_options()))

    assert session.navigated == [url("a"), url("b")]
    assert discoverer.calls == 2
    assert result.failed_urls == []
    assert result.stats.total_variations == 4
