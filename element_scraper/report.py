"""
HTML report module.
Renders the discovered variations, grouped by page and block type, with their screenshots.
"""

import logging
import re
from collections import OrderedDict
from datetime import datetime
from html import escape
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import aiofiles

from element_scraper.models import CrawlFailure, CrawlStats, Variation

logger = logging.getLogger(__name__)

BLOCK_CLASS_PREFIX = 'wp-block-'
OTHER_BLOCK = 'other'

REPORT_STYLE = """
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; margin: 0; padding: 24px; background: #f5f6f8; color: #222; }
h1 { margin-top: 0; }
.stats { display: flex; gap: 16px; margin-bottom: 24px; }
.stat { background: #fff; border-radius: 6px; padding: 12px 18px; box-shadow: 0 1px 3px rgba(0,0,0,.08); }
.page-group, .block-type-group { background: #fff; border-radius: 6px; padding: 16px; margin-bottom: 20px; box-shadow: 0 1px 3px rgba(0,0,0,.08); }
.page-stats { color: #777; font-weight: normal; font-size: .8em; margin-left: 8px; }
.block-variations { display: grid; grid-template-columns: repeat(auto-fill, minmax(320px, 1fr)); gap: 16px; }
.variation { border: 1px solid #e3e5e8; border-radius: 6px; padding: 12px; }
.screenshot { max-width: 100%; border: 1px solid #ddd; }
.class-tag { display: inline-block; background: #eef1f5; border-radius: 3px; padding: 2px 6px; margin: 2px; font-size: .8em; }
.failed-urls { background: #fff4f4; border-radius: 6px; padding: 16px; }
.error-message { color: #b00020; }
"""


def block_type(class_names: Sequence[str]) -> str:
    """First ``wp-block-`` class without a ``__`` sub-element marker, else ``other``."""
    for cls in class_names:
        if cls.startswith(BLOCK_CLASS_PREFIX) and '__' not in cls:
            return cls
    return OTHER_BLOCK


def block_display_name(block: str) -> str:
    name = block.replace(BLOCK_CLASS_PREFIX, '', 1).replace('-', ' ')
    return re.sub(r'\b\w', lambda m: m.group(0).upper(), name)


def group_by_block_type(variations: Sequence[Variation]) -> Dict[str, List[Variation]]:
    groups: Dict[str, List[Variation]] = {}
    for variation in variations:
        groups.setdefault(block_type(variation.class_names), []).append(variation)
    return dict(sorted(groups.items()))


def group_by_page(variations: Sequence[Variation]) -> Dict[str, Dict[str, List[Variation]]]:
    """Group by page URL (first-seen order), then by block type (sorted)."""
    pages: Dict[str, List[Variation]] = OrderedDict()
    for variation in variations:
        pages.setdefault(variation.page_url or 'unknown', []).append(variation)
    return OrderedDict((url, group_by_block_type(items)) for url, items in pages.items())


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


class ReportGenerator:
    """Writes single-page and multi-page variation reports."""

    def __init__(self, config, logger_instance: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger_instance or logger

    def _variation_html(self, variation: Variation, position: int, total: int,
                        page_url: Optional[str] = None) -> str:
        block = block_type(variation.class_names)
        if variation.screenshot_path:
            screenshot_html = (
                f'<img src="{escape(self.config.screenshot_dir)}/{escape(variation.screenshot_path)}" '
                f'alt="Screenshot of {escape(block)} variation {position}" class="screenshot">'
            )
        else:
            screenshot_html = '<p>No screenshot available</p>'

        class_tags = ''.join(f'<span class="class-tag">{escape(cls)}</span>' for cls in variation.class_names)
        source_url = variation.source_url(page_url)
        source_html = (
            f'<p><strong>Source:</strong> <a href="{escape(source_url)}" target="_blank">View on page</a></p>'
            if source_url else ''
        )
        text_html = (
            f'<p><strong>Content:</strong> {escape(variation.text_content)}</p>'
            if variation.text_content else ''
        )

        return f"""
        <div class="variation">
            <h5>Variation {position} of {total}</h5>
            {screenshot_html}
            <div class="metadata">
                <p><strong>Selector:</strong> <code>{escape(variation.selector)}</code></p>
                <p><strong>Tag Name:</strong> {escape(variation.tag_name)}</p>
                {text_html}
                <p><strong>Classes:</strong></p>
                <div class="class-list">{class_tags}</div>
                {source_html}
            </div>
        </div>"""

    def _block_groups_html(self, groups: Dict[str, List[Variation]], page_url: Optional[str] = None) -> str:
        parts = []
        for block, variations in groups.items():
            items = ''.join(
                self._variation_html(variation, index + 1, len(variations), page_url)
                for index, variation in enumerate(variations)
            )
            parts.append(f"""
            <div class="block-type-group">
                <h4 class="block-type-title">{escape(block_display_name(block))} ({_plural(len(variations), 'variation')})</h4>
                <div class="block-variations">{items}</div>
            </div>""")
        return ''.join(parts)

    def _document(self, title: str, body: str) -> str:
        generated = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(title)}</title>
    <style>{REPORT_STYLE}</style>
</head>
<body>
    <h1>{escape(title)}</h1>
    <p>Generated {generated}</p>
    {body}
</body>
</html>
"""

    async def _write(self, filename: str, content: str) -> str:
        output_dir = Path(self.config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        report_path = output_dir / filename
        async with aiofiles.open(report_path, 'w', encoding='utf-8') as f:
            await f.write(content)
        self.logger.info(f"📄 Report saved to: {report_path}")
        return str(report_path)

    def render_report(self, variations: Sequence[Variation], url: Optional[str] = None) -> str:
        stats = f"""
        <div class="stats">
            <div class="stat"><strong>{len(variations)}</strong> variations</div>
            {f'<div class="stat">Source: <a href="{escape(url)}">{escape(url)}</a></div>' if url else ''}
        </div>"""
        return self._document('Element Variations Report', stats + self._block_groups_html(group_by_block_type(variations), url))

    def render_sitemap_report(self, variations: Sequence[Variation], failed_urls: Sequence[CrawlFailure],
                              stats: CrawlStats) -> str:
        page_parts = []
        for page_url, groups in group_by_page(variations).items():
            page_title = re.sub(r'/$', '', re.sub(r'^https?://', '', page_url))
            total = sum(len(items) for items in groups.values())
            page_parts.append(f"""
        <div class="page-group">
            <h3 class="page-title">
                <a href="{escape(page_url)}" target="_blank">{escape(page_title)}</a>
                <span class="page-stats">({_plural(total, 'variation')})</span>
            </h3>
            <div class="page-content">{self._block_groups_html(groups)}</div>
        </div>""")

        failed_html = ''
        if failed_urls:
            items = ''.join(
                f'<div class="failed-item"><strong>{escape(failure.url)}</strong><br>'
                f'<span class="error-message">Error: {escape(failure.error)}</span></div>'
                for failure in failed_urls
            )
            failed_html = f'<div class="failed-urls"><h2>Failed URLs</h2><div class="failed-list">{items}</div></div>'

        stats_html = f"""
        <div class="stats">
            <div class="stat"><strong>{stats.total_variations}</strong> variations</div>
            <div class="stat"><strong>{stats.successful_pages}/{stats.total_pages}</strong> pages successful</div>
            <div class="stat"><strong>{stats.processed_pages}</strong> pages processed</div>
            <div class="stat"><strong>{len(failed_urls)}</strong> failed</div>
        </div>"""
        return self._document('Sitemap Variations Report', stats_html + ''.join(page_parts) + failed_html)

    async def write_report(self, variations: Sequence[Variation], url: Optional[str] = None) -> str:
        return await self._write(self.config.report_file, self.render_report(variations, url))

    async def write_sitemap_report(self, variations: Sequence[Variation], failed_urls: Sequence[CrawlFailure],
                                   stats: CrawlStats) -> str:
        content = self.render_sitemap_report(variations, failed_urls, stats)
        return await self._write(self.config.sitemap_report_file, content)
