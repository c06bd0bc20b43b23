"""Tests for ``element_scraper.link_discovery``."""

import asyncio

from element_scraper.link_discovery import (
    LinkDiscoverer,
    apply_patterns,
    clean_url,
    filter_links,
    resolve_href,
)

PAGE = "https://example.com/products/"


def test_resolve_href_variants():
    assert resolve_href("/about", PAGE, "example.com") == "https://example.com/about"
    assert resolve_href("https://other.com/x", PAGE, "example.com") == "https://other.com/x"
    assert resolve_href("decking", PAGE, "example.com") == "https://example.com/products/decking"
    assert resolve_href("//cdn.example.com/a", PAGE, "example.com") == "https://cdn.example.com/a"
    assert resolve_href("#top", PAGE, "example.com") is None
    assert resolve_href("mailto:hi@example.com", PAGE, "example.com") is None
    assert resolve_href("tel:+15555555", PAGE, "example.com") is None
    assert resolve_href("   ", PAGE, "example.com") is None


def test_clean_url_drops_fragment_and_query():
    assert clean_url("https://example.com/a?x=1#frag") == "https://example.com/a"
    assert clean_url("https://example.com/b#frag") == "https://example.com/b"


def test_apply_patterns_include_then_exclude():
    urls = ["https://e.com/blog/a", "https://e.com/blog/draft", "https://e.com/shop"]
    assert apply_patterns(urls, ["/blog/"], ["draft"]) == ["https://e.com/blog/a"]
    assert apply_patterns(urls) == urls


def test_filter_links_keeps_same_host_new_urls_in_order():
    hrefs = [
        "/about",
        "https://example.com/about#team",
        "https://sub.example.com/x",
        "https://other.com/",
        "/contact?ref=nav",
        "#",
        "mailto:x@example.com",
        "/seen",
    ]
    links = filter_links(hrefs, PAGE, "example.com", visited={"https://example.com/seen"})

    assert links == ["https://example.com/about", "https://example.com/contact"]


def test_filter_links_applies_patterns():
    hrefs = ["/blog/one", "/blog/private", "/shop"]
    links = filter_links(hrefs, PAGE, "example.com", include_patterns=["/blog/"], exclude_patterns=["private"])
    assert links == ["https://example.com/blog/one"]


class FakePage:
    def __init__(self, hrefs=None, error=None):
        self.url = PAGE
        self.hrefs = hrefs or []
        self.error = error

    async def eval_on_selector_all(self, selector, script):
        if self.error:
            raise self.error
        return self.hrefs


def test_discover_links_reads_anchors_from_page():
    page = FakePage(["/a", "/b", "/a#x"])
    links = asyncio.run(LinkDiscoverer().discover_links(page, "example.com", set()))
    assert links == ["https://example.com/a", "https://example.com/b"]


def test_discover_links_returns_empty_on_failure():
    page = FakePage(error=RuntimeError("execution context destroyed"))
    assert asyncio.run(LinkDiscoverer().discover_links(page, "example.com", set())) == []
