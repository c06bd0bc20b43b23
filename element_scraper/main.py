#!/usr/bin/env python3
"""
Main entry point for the element scraper.
Uses YAML configuration and named profiles for developer-friendly setup.
"""

import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from element_scraper.config import config
from element_scraper.config_loader import ConfigLoader
from element_scraper.crawler import VariationCrawler
from element_scraper.models import CrawlOptions
from element_scraper.utils import (
    clean_output,
    open_report,
    print_summary,
    save_results_to_json,
    setup_logging,
    show_status,
    validate_dependencies,
)

logger = logging.getLogger(__name__)

USAGE = """
Element Scraper - find and screenshot the distinct variations of an element

Usage:
  python -m element_scraper.main <profile>                           # Use a named profile
  python -m element_scraper.main <url> <selector> [prefix]           # Scrape a single page
  python -m element_scraper.main sitemap <base-url> <selector> [prefix]  # Crawl from sitemap
  python -m element_scraper.main --sample-config                     # Create sample config.yaml
  python -m element_scraper.main open|clean|status                   # Manage output

Examples:
  python -m element_scraper.main https://example.com .btn btn-
  python -m element_scraper.main sitemap https://example.com .wp-block wp-block-

Available profiles:
{profiles}
"""


def _print_usage(yaml_config: Dict[str, Any]) -> None:
    profiles = ConfigLoader.get_profiles(yaml_config)
    listing = "\n".join(f"  - {name}: {p.get('description', '')}" for name, p in profiles.items())
    print(USAGE.format(profiles=listing))


def _configure_logging(yaml_config: Dict[str, Any]) -> None:
    log_settings = yaml_config.get('logging', {}) or {}
    log_level = log_settings.get('level', 'INFO')
    base_log_file = log_settings.get('file')

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    if base_log_file:
        base = Path(base_log_file)
        log_dir = base.parent if base.parent != Path('.') else Path('logs')
        log_file = log_dir / f"{base.stem}_{timestamp}{base.suffix or '.log'}"
    else:
        log_dir = Path('logs')
        log_file = log_dir / f"scraper_{timestamp}.log"
    log_dir.mkdir(parents=True, exist_ok=True)

    setup_logging(log_level, str(log_file))
    logger.info(f"Logging configured - log file: {log_file}")


def _print_banner(mode: str, url: str, selector: str, prefix: str) -> None:
    print("=" * 60)
    print("Element Scraper Configuration")
    print("=" * 60)
    print(f"  Mode:            {mode}")
    print(f"  URL:             {url}")
    print(f"  Selector:        {selector}")
    print(f"  Class prefix:    {prefix or '(none)'}")
    print(f"  Output:          {config.output_dir}")
    print(f"  Max URLs:        {config.max_urls}")
    print(f"  Max depth:       {config.max_depth}")
    print(f"  Browser Mode:    {'Headless' if config.browser_headless else 'Visible'}")
    print("=" * 60)
    print()


def _profile_options(profile: Dict[str, Any]) -> CrawlOptions:
    overrides = {
        key: profile[key]
        for key in ('max_urls', 'max_depth', 'follow_links', 'include_patterns',
                    'exclude_patterns', 'delay_between_pages', 'continue_on_error', 'manual_urls')
        if key in profile
    }
    return CrawlOptions.from_config(config, **overrides)


async def run(args: List[str], yaml_config: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Run the scrape described by the command-line arguments.

    Returns:
        Result dictionary, or None when the arguments were invalid
    """
    crawler = VariationCrawler(config)

    if args[0] == 'sitemap':
        if len(args) < 3:
            print("❌ Sitemap scraping requires: sitemap <base-url> <selector> [class-prefix]")
            return None
        base_url, selector = args[1], args[2]
        prefix = args[3] if len(args) > 3 else ''
        _print_banner('sitemap', base_url, selector, prefix)
        result = await crawler.crawl_sitemap(base_url, selector, prefix)
        print_summary(result)
        return result.to_dict()

    profile = ConfigLoader.get_profile(yaml_config, args[0])
    if profile is not None:
        print(f"Using configuration: {args[0]} - {profile.get('description', '')}")
        prefix = profile.get('variation_class_prefix', '')
        if profile.get('sitemap'):
            _print_banner('sitemap', profile['url'], profile['selector'], prefix)
            result = await crawler.crawl_sitemap(profile['url'], profile['selector'], prefix, _profile_options(profile))
            print_summary(result)
            return result.to_dict()
        url, selector = profile['url'], profile['selector']
    elif len(args) >= 2:
        url, selector = args[0], args[1]
        prefix = args[2] if len(args) > 2 else ''
    else:
        print('❌ Invalid arguments. Use --help for usage information.')
        return None

    _print_banner('single page', url, selector, prefix)
    scrape_result = await crawler.scrape(url, selector, prefix)
    print("\n✅ Scraping completed successfully!")
    print(f"📊 Found {len(scrape_result.variations)} variations")
    print(f"📄 Report saved to: {scrape_result.report_path}")
    return scrape_result.to_dict()


def main():
    """Main entry point for the element scraper."""
    try:
        yaml_config = ConfigLoader.load_config()
        if yaml_config:
            config.update_from_yaml(yaml_config)
            logger.info("Configuration loaded from YAML")
    except ValueError as e:
        logger.warning(f"Could not load YAML config, using defaults: {e}")
        print(f"⚠️  Warning: Could not load config.yaml, using defaults: {e}")
        yaml_config = {}

    config.update_from_env()

    args = sys.argv[1:]
    if not args or args[0] in ('--help', '-h'):
        _print_usage(yaml_config)
        return

    command = args[0]
    if command == '--sample-config':
        ConfigLoader.create_sample_config()
        print("\n✅ Sample config.yaml created!")
        print("   Edit config.yaml to customize settings, then run: python -m element_scraper.main")
        return
    if command == 'open':
        open_report(str(Path(config.output_dir) / config.report_file))
        return
    if command == 'clean':
        if clean_output(config.output_dir):
            print(f"🧹 Cleaned output directory: {config.output_dir}")
        return
    if command == 'status':
        show_status(config.output_dir, config.screenshot_dir, config.report_file)
        return

    if not validate_dependencies():
        print("❌ Dependency validation failed. Please install missing packages.")
        sys.exit(1)

    _configure_logging(yaml_config)
    config.validate()

    try:
        results = asyncio.run(run(args, yaml_config))
    except KeyboardInterrupt:
        logger.warning("Scraping interrupted by user")
        print("\n⚠️  Scraping interrupted by user")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Scraping failed with error: {e}", exc_info=True)
        print(f"\n❌ Scraping failed: {e}")
        sys.exit(1)

    if results is None:
        sys.exit(1)

    save_json = (yaml_config.get('results', {}) or {}).get('save_json')
    if save_json:
        save_results_to_json(results, save_json)
        print(f"\n💾 Detailed results saved to: {save_json}")


if __name__ == '__main__':
    main()
