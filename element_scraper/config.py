"""
Configuration module for the element scraper.
Handles browser, timeout, screenshot, crawl and output settings.
Supports YAML configuration files and environment variable overrides.
"""

import logging
import os
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def _env_flag(name: str) -> bool:
    return os.getenv(name, 'false').lower() == 'true'


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(',') if part.strip()]
    return [str(part) for part in value]


class ScraperConfig:
    """Configuration class for the element scraper with all settings."""

    def __init__(self):
        logger.debug("Initializing ScraperConfig")

        # Browser settings
        self.browser_headless = _env_flag('CI') or _env_flag('PLAYWRIGHT_HEADLESS')
        self.browser_args = ['--start-maximized']
        self.viewport_width = 1024
        self.viewport_height = 768
        self.enable_stealth = False

        # Timeout settings (in seconds)
        self.navigation_timeout = 60
        self.settle_delay = 3
        self.network_idle_timeout = 10
        self.visibility_timeout = 5
        self.screenshot_timeout = 15

        # Screenshot settings
        self.screenshot_padding = 10
        self.max_screenshots_per_page = 50
        self.scroll_settle_delay = 1.0
        self.post_cleanup_delay = 0.5

        # Crawl settings
        self.max_urls = 10
        self.max_depth = 2
        self.follow_links = True
        self.continue_on_error = True
        self.delay_between_pages = 2.0
        self.include_patterns: List[str] = []
        self.exclude_patterns: List[str] = []
        self.manual_urls: Optional[List[str]] = None
        self.max_requests_per_minute = 0  # 0 = no per-domain cap

        # Sitemap settings
        self.sitemap_paths = ['/sitemap.xml', '/sitemap_index.xml']
        self.sitemap_timeout = 30

        # Output settings
        self.output_dir = 'output'
        self.screenshot_dir = 'screenshots'
        self.report_file = 'variations_report.html'
        self.sitemap_report_file = 'sitemap_variations_report.html'

    def update_from_yaml(self, yaml_config: Dict[str, Any]) -> None:
        """
        Update configuration from YAML config dictionary.

        Handles nested YAML structure and maps to flat config attributes.

        Args:
            yaml_config: Dictionary loaded from YAML file
        """
        logger.debug(f"Updating configuration from YAML with {len(yaml_config)} top-level keys")

        if 'browser' in yaml_config:
            browser = yaml_config['browser'] or {}
            if 'headless' in browser:
                self.browser_headless = bool(browser['headless'])
            if 'args' in browser:
                self.browser_args = list(browser['args'] or [])
            if 'viewport' in browser:
                viewport = browser['viewport'] or {}
                if 'width' in viewport:
                    self.viewport_width = viewport['width']
                if 'height' in viewport:
                    self.viewport_height = viewport['height']
            if 'enable_stealth' in browser:
                self.enable_stealth = bool(browser['enable_stealth'])

        if 'timeouts' in yaml_config:
            timeouts = yaml_config['timeouts'] or {}
            if 'navigation' in timeouts:
                self.navigation_timeout = timeouts['navigation']
            if 'settle' in timeouts:
                self.settle_delay = timeouts['settle']
            if 'network_idle' in timeouts:
                self.network_idle_timeout = timeouts['network_idle']
            if 'visibility' in timeouts:
                self.visibility_timeout = timeouts['visibility']
            if 'screenshot' in timeouts:
                self.screenshot_timeout = timeouts['screenshot']

        if 'screenshot' in yaml_config:
            screenshot = yaml_config['screenshot'] or {}
            if 'padding' in screenshot:
                self.screenshot_padding = screenshot['padding']
            if 'max_per_page' in screenshot:
                self.max_screenshots_per_page = screenshot['max_per_page']
            if 'scroll_settle_delay' in screenshot:
                self.scroll_settle_delay = screenshot['scroll_settle_delay']
            if 'post_cleanup_delay' in screenshot:
                self.post_cleanup_delay = screenshot['post_cleanup_delay']

        if 'crawl' in yaml_config:
            crawl = yaml_config['crawl'] or {}
            if 'max_urls' in crawl:
                self.max_urls = crawl['max_urls']
            if 'max_depth' in crawl:
                self.max_depth = crawl['max_depth']
            if 'follow_links' in crawl:
                self.follow_links = bool(crawl['follow_links'])
            if 'continue_on_error' in crawl:
                self.continue_on_error = bool(crawl['continue_on_error'])
            if 'delay_between_pages' in crawl:
                self.delay_between_pages = crawl['delay_between_pages']
            if 'include_patterns' in crawl:
                self.include_patterns = _as_list(crawl['include_patterns'])
            if 'exclude_patterns' in crawl:
                self.exclude_patterns = _as_list(crawl['exclude_patterns'])
            if 'manual_urls' in crawl:
                self.manual_urls = _as_list(crawl['manual_urls']) or None
            if 'max_requests_per_minute' in crawl:
                self.max_requests_per_minute = crawl['max_requests_per_minute']

        if 'sitemap' in yaml_config:
            sitemap = yaml_config['sitemap'] or {}
            if 'paths' in sitemap:
                self.sitemap_paths = _as_list(sitemap['paths'])
            if 'timeout' in sitemap:
                self.sitemap_timeout = sitemap['timeout']

        if 'output' in yaml_config:
            output = yaml_config['output'] or {}
            if 'dir' in output:
                self.output_dir = output['dir']
            if 'screenshot_dir' in output:
                self.screenshot_dir = output['screenshot_dir']
            if 'report_file' in output:
                self.report_file = output['report_file']
            if 'sitemap_report_file' in output:
                self.sitemap_report_file = output['sitemap_report_file']

        logger.info("Configuration updated from YAML")

    def update_from_env(self) -> None:
        """Update configuration from environment variables."""
        logger.debug("Updating configuration from environment variables")

        env_mappings = {
            'SCRAPER_HEADLESS': ('browser_headless', lambda x: x.lower() == 'true'),
            'SCRAPER_NAVIGATION_TIMEOUT': ('navigation_timeout', int),
            'SCRAPER_OUTPUT_DIR': ('output_dir', str),
            'SCRAPER_MAX_URLS': ('max_urls', int),
            'SCRAPER_MAX_DEPTH': ('max_depth', int),
            'SCRAPER_DELAY': ('delay_between_pages', float),
            'SCRAPER_ENABLE_STEALTH': ('enable_stealth', lambda x: x.lower() == 'true'),
        }

        updated_from_env = []
        for env_var, (attr, converter) in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    setattr(self, attr, converter(value))
                    updated_from_env.append(env_var)
                    logger.debug(f"Set {attr} from {env_var}: {value}")
                except (ValueError, TypeError) as e:
                    logger.warning(f"Invalid value for {env_var}: {value} - {e}")

        if updated_from_env:
            logger.info(f"Updated configuration from environment variables: {updated_from_env}")
        else:
            logger.debug("No environment variables found for configuration")

    def validate(self) -> bool:
        """Validate configuration values, clamping the ones that make no sense."""
        logger.debug("Validating configuration values")

        validation_warnings = []

        if self.max_urls < 1:
            validation_warnings.append(f"max_urls ({self.max_urls}) should be at least 1")
            self.max_urls = 1

        if self.max_depth < 0:
            validation_warnings.append(f"max_depth ({self.max_depth}) should not be negative")
            self.max_depth = 0

        if self.delay_between_pages < 0:
            validation_warnings.append("delay_between_pages should not be negative")
            self.delay_between_pages = 0

        if self.navigation_timeout < 5:
            validation_warnings.append("navigation_timeout should be at least 5 seconds")
            self.navigation_timeout = 5

        if self.viewport_width < 100 or self.viewport_height < 100:
            validation_warnings.append("viewport should be at least 100x100")
            self.viewport_width = max(self.viewport_width, 100)
            self.viewport_height = max(self.viewport_height, 100)

        for warning in validation_warnings:
            logger.warning(f"Configuration validation warning: {warning}")

        if validation_warnings:
            logger.info(f"Configuration validation completed with {len(validation_warnings)} warnings")
        else:
            logger.debug("Configuration validation completed successfully")

        return True

    @property
    def viewport(self) -> Dict[str, int]:
        return {'width': self.viewport_width, 'height': self.viewport_height}

    def __str__(self) -> str:
        """String representation of configuration."""
        return f"""Scraper Configuration:
- Headless: {self.browser_headless}
- Viewport: {self.viewport_width}x{self.viewport_height}
- Navigation timeout: {self.navigation_timeout}s
- Max URLs: {self.max_urls}, max depth: {self.max_depth}, follow links: {self.follow_links}
- Delay between pages: {self.delay_between_pages}s
- Output directory: {self.output_dir}
"""


# Global configuration instance
config = ScraperConfig()
