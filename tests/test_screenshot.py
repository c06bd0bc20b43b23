"""Tests for ``element_scraper.screenshot`` clip geometry and the capture fallback chain."""

import asyncio

from element_scraper.config import ScraperConfig
from element_scraper.models import BoundingBox, Variation
from element_scraper.screenshot import (
    CaptureStrategy,
    CaptureTarget,
    ConservativeClipStrategy,
    ContentAwareClipStrategy,
    DirectClipStrategy,
    ElementStrategy,
    ScreenshotCapture,
    conservative_clip,
    default_strategies,
    padded_clip,
)

VIEWPORT = {"width": 1024, "height": 768}


def test_padded_clip_adds_padding_around_element():
    clip = padded_clip(BoundingBox(x=100, y=50, width=200, height=100), VIEWPORT, padding=10)
    assert clip == {"x": 90, "y": 40, "width": 220, "height": 120}


def test_padded_clip_is_clamped_at_page_origin():
    clip = padded_clip(BoundingBox(x=3, y=2, width=50, height=50), VIEWPORT, padding=10)
    assert clip["x"] == 0
    assert clip["y"] == 0


def test_padded_clip_width_stays_inside_viewport():
    clip = padded_clip(BoundingBox(x=0, y=0, width=2000, height=100), VIEWPORT, padding=10)
    assert clip["width"] == 1014


def test_padded_clip_rejects_unusable_boxes():
    assert padded_clip(None, VIEWPORT) is None
    assert padded_clip(BoundingBox(x=0, y=0, width=0, height=100), VIEWPORT) is None
    # Element almost entirely off to the right leaves a sliver narrower than the minimum
    assert padded_clip(BoundingBox(x=1030, y=0, width=50, height=50), VIEWPORT) is None


def test_conservative_clip_only_applies_to_very_tall_elements():
    assert conservative_clip(BoundingBox(x=0, y=10, width=500, height=900), VIEWPORT) is None
    clip = conservative_clip(BoundingBox(x=0, y=10, width=2000, height=1200), VIEWPORT)
    assert clip == {"x": 0, "y": 10, "width": 1004, "height": 800}


def test_default_strategy_order():
    strategies = default_strategies(ScraperConfig())
    assert [type(s) for s in strategies] == [
        DirectClipStrategy,
        ConservativeClipStrategy,
        ContentAwareClipStrategy,
        ElementStrategy,
    ]


class FakeStrategy(CaptureStrategy):
    def __init__(self, name, outcome, calls):
        self.name = name
        self.outcome = outcome
        self.calls = calls

    async def capture(self, target):
        self.calls.append(self.name)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _target(box=None, page=None):
    return CaptureTarget(page=page, locator=None, path="shot.png", box=box, viewport=VIEWPORT)


def test_run_strategies_stops_at_first_success():
    calls = []
    capture = ScreenshotCapture(ScraperConfig(), strategies=[
        FakeStrategy("skip", False, calls),
        FakeStrategy("boom", RuntimeError("clip outside page"), calls),
        FakeStrategy("ok", True, calls),
        FakeStrategy("unused", True, calls),
    ])

    assert asyncio.run(capture.run_strategies(_target(), "element 0")) == "ok"
    assert calls == ["skip", "boom", "ok"]


def test_run_strategies_returns_none_when_all_fail():
    calls = []
    capture = ScreenshotCapture(ScraperConfig(), strategies=[
        FakeStrategy("a", RuntimeError("x"), calls),
        FakeStrategy("b", False, calls),
    ])

    assert asyncio.run(capture.run_strategies(_target())) is None
    assert calls == ["a", "b"]


class RecordingPage:
    def __init__(self):
        self.shots = []

    async def screenshot(self, **kwargs):
        self.shots.append(kwargs)


def test_direct_clip_strategy_takes_clipped_page_screenshot():
    page = RecordingPage()
    strategy = DirectClipStrategy(padding=10)

    assert asyncio.run(strategy.capture(_target(BoundingBox(100, 50, 200, 100), page))) is True
    assert page.shots[0]["clip"] == {"x": 90, "y": 40, "width": 220, "height": 120}
    assert page.shots[0]["path"] == "shot.png"
    assert "full_page" not in page.shots[0]


def test_direct_clip_strategy_declines_without_box():
    page = RecordingPage()
    assert asyncio.run(DirectClipStrategy().capture(_target(None, page))) is False
    assert page.shots == []


def _variations(count):
    return [
        Variation(index=i, selector=f".item:nth-child({i + 1})", actual_selector=f".item:nth-child({i + 1})",
                  tag_name="div", class_names=["item"], text_content="")
        for i in range(count)
    ]


class StubbedCapture(ScreenshotCapture):
    def __init__(self, config, failing=()):
        super().__init__(config, strategies=[])
        self.failing = set(failing)
        self.seen = []

    async def capture_variation(self, page, variation, screenshot_dir, name_prefix="element"):
        self.seen.append(variation.index)
        if variation.index in self.failing:
            raise RuntimeError("element detached")
        variation.screenshot_path = f"{name_prefix}_{variation.index}.png"
        return variation.screenshot_path


def test_capture_all_respects_per_page_cap_and_isolates_failures(tmp_path):
    config = ScraperConfig()
    config.max_screenshots_per_page = 3
    capture = StubbedCapture(config, failing=[1])
    variations = _variations(5)

    saved = asyncio.run(capture.capture_all(None, variations, tmp_path / "shots"))

    assert saved == 2
    assert capture.seen == [0, 1, 2]
    assert [v.screenshot_path for v in variations] == ["element_0.png", None, "element_2.png", None, None]
    assert (tmp_path / "shots").is_dir()
