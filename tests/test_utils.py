"""Tests for output helpers in ``element_scraper.utils`` and pacing in ``element_scraper.rate_limiter``."""

import asyncio
import json

import element_scraper.rate_limiter as rate_limiter_module
from element_scraper.models import CrawlFailure, CrawlResult, CrawlStats
from element_scraper.rate_limiter import DelayManager, RateLimiter
from element_scraper.utils import clean_output, get_output_stats, print_summary, save_results_to_json


def test_save_results_to_json_creates_parent_dirs(tmp_path):
    target = tmp_path / "results" / "run.json"
    save_results_to_json({"variations": [], "stats": {"totalPages": 1}}, str(target))

    assert json.loads(target.read_text(encoding="utf-8"))["stats"]["totalPages"] == 1


def test_output_stats_and_clean(tmp_path):
    output = tmp_path / "output"
    (output / "screenshots").mkdir(parents=True)
    (output / "screenshots" / "a.png").write_bytes(b"png")
    (output / "screenshots" / "b.png").write_bytes(b"png")
    (output / "variations_report.html").write_text("x" * 4096, encoding="utf-8")

    stats = get_output_stats(str(output))
    assert stats == {"has_report": True, "screenshot_count": 2, "report_size": 4}

    assert clean_output(str(output)) is True
    assert not output.exists()
    assert clean_output(str(output)) is False


def test_print_summary_lists_failures(capsys):
    result = CrawlResult(
        variations=[],
        failed_urls=[CrawlFailure(url="https://e.com/x", error="boom")],
        stats=CrawlStats(total_pages=2, successful_pages=1, total_variations=0, processed_pages=2),
    )
    print_summary(result)

    out = capsys.readouterr().out
    assert "Successful pages: 1/2" in out
    assert "https://e.com/x: boom" in out


def test_disabled_rate_limiter_never_sleeps(monkeypatch):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr(rate_limiter_module.asyncio, "sleep", fake_sleep)

    asyncio.run(RateLimiter(0).wait_if_needed("https://e.com/a"))
    asyncio.run(DelayManager(0).wait_between_pages())
    assert sleeps == []

    asyncio.run(DelayManager(1.5).wait_between_pages())
    assert sleeps == [1.5]


def test_rate_limiter_waits_once_cap_is_reached(monkeypatch):
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    monkeypatch.setattr(rate_limiter_module.asyncio, "sleep", fake_sleep)
    limiter = RateLimiter(max_requests_per_minute=2)

    async def run():
        for path in ("a", "b", "c"):
            await limiter.wait_if_needed(f"https://e.com/{path}")
        await limiter.wait_if_needed("https://other.com/")

    asyncio.run(run())

    assert len(sleeps) == 1
    assert 59 < sleeps[0] <= 60.1
