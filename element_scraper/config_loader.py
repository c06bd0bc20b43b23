"""
YAML configuration loader for the element scraper.
Loads settings files and named scraping profiles.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


DEFAULT_PROFILES: Dict[str, Dict[str, Any]] = {
    'custom': {
        'url': 'https://your-website.com',
        'selector': '.your-selector',
        'variation_class_prefix': 'your-prefix',
        'description': 'Your custom scraping configuration',
    },
    'timbertech': {
        'url': 'https://www.timbertech.com/',
        'selector': '.entry-content > *[class*="wp-block-"]',
        'variation_class_prefix': 'wp-block-',
        'description': 'TimberTech WordPress block elements (direct children only, excluding __ classes)',
    },
    'timbertech-sitemap': {
        'url': 'https://www.timbertech.com/',
        'selector': '.entry-content > *[class*="wp-block-"]',
        'variation_class_prefix': 'wp-block-',
        'description': 'TimberTech WordPress blocks from multiple pages with link following',
        'sitemap': True,
        'manual_urls': [
            'https://www.timbertech.com/',
            'https://www.timbertech.com/about/',
            'https://www.timbertech.com/decking/',
            'https://www.timbertech.com/railing/',
            'https://www.timbertech.com/inspiration/',
        ],
        'follow_links': True,
        'max_urls': 20,
        'max_depth': 2,
    },
}


SAMPLE_CONFIG = """# Element Scraper Configuration
# All settings are optional - defaults will be used if not specified

# Browser Settings
browser:
  headless: false  # CI=true or PLAYWRIGHT_HEADLESS=true also force headless
  viewport:
    width: 1024
    height: 768
  args:
    - --start-maximized
  enable_stealth: false

# Timeout Settings (seconds)
timeouts:
  navigation: 60
  settle: 3          # fixed wait after DOM content loaded
  network_idle: 10   # allowed to time out without failing
  visibility: 5
  screenshot: 15

# Screenshot Settings
screenshot:
  padding: 10
  max_per_page: 50
  scroll_settle_delay: 1.0
  post_cleanup_delay: 0.5

# Crawl Settings
crawl:
  max_urls: 10
  max_depth: 2
  follow_links: true
  continue_on_error: true
  delay_between_pages: 2.0  # seconds
  include_patterns: []
  exclude_patterns: []
  manual_urls: null  # list of URLs to use instead of the sitemap
  max_requests_per_minute: 0  # 0 = no per-domain cap

# Sitemap Settings
sitemap:
  paths:
    - /sitemap.xml
    - /sitemap_index.xml
  timeout: 30

# Output Settings
output:
  dir: output
  screenshot_dir: screenshots
  report_file: variations_report.html
  sitemap_report_file: sitemap_variations_report.html

# Logging Settings
logging:
  level: INFO  # DEBUG, INFO, WARNING, ERROR
  file: null  # Optional log file path

# Results Settings
results:
  save_json: null  # Optional path to save results JSON

# Named scraping profiles (python -m element_scraper.main <profile>)
profiles:
  buttons:
    url: https://example.com
    selector: button
    variation_class_prefix: btn-
    description: Buttons styled with btn- classes
"""


class ConfigLoader:
    """Handles loading of YAML configuration files and scraping profiles."""

    @staticmethod
    def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Search order:
        1. Explicit config_path if provided
        2. config.yaml in current directory
        3. config.yaml in project root
        4. Returns empty dict (will use defaults)

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Dictionary of configuration values
        """
        if config_path:
            config_file = Path(config_path)
            if not config_file.exists():
                logger.warning(f"Config file not found at explicit path: {config_path}")
                return {}
        else:
            config_file = Path("config.yaml")
            if not config_file.exists():
                config_file = Path(__file__).parent.parent / "config.yaml"
                if not config_file.exists():
                    logger.info("No config.yaml found, using defaults")
                    return {}

        try:
            logger.info(f"Loading configuration from: {config_file}")
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML config file: {e}")
            raise ValueError(f"Invalid YAML in config file: {e}")

        if not isinstance(config_data, dict):
            raise ValueError(f"Config file {config_file} must contain a mapping at the top level")

        logger.info(f"Successfully loaded configuration from {config_file}")
        return config_data

    @staticmethod
    def get_profiles(yaml_config: Optional[Dict[str, Any]] = None) -> Dict[str, Dict[str, Any]]:
        """Built-in profiles merged with the ``profiles`` section of the YAML config."""
        profiles = {name: dict(profile) for name, profile in DEFAULT_PROFILES.items()}
        if yaml_config:
            for name, profile in (yaml_config.get('profiles') or {}).items():
                profiles[name] = dict(profile or {})
        return profiles

    @staticmethod
    def get_profile(yaml_config: Optional[Dict[str, Any]], name: str) -> Optional[Dict[str, Any]]:
        profile = ConfigLoader.get_profiles(yaml_config).get(name)
        if profile is None:
            return None
        if not profile.get('url') or not profile.get('selector'):
            raise ValueError(f"Profile '{name}' needs both 'url' and 'selector'")
        return profile

    @staticmethod
    def create_sample_config(output_path: Path = Path("config.yaml")) -> None:
        """
        Create a sample config.yaml file with all available options.

        Args:
            output_path: Path where to create the sample config file
        """
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(SAMPLE_CONFIG)
        logger.info(f"Sample config file created at: {output_path}")
