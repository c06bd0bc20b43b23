"""
Utility functions for the element scraper.
Includes logging setup, result output and output-directory maintenance.
"""

import importlib.util
import json
import logging
import shutil
import sys
import webbrowser
from pathlib import Path
from typing import Any, Dict, Optional

from element_scraper.models import CrawlResult

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = 'INFO', log_file: Optional[str] = None) -> logging.Logger:
    """
    Set up logging configuration for the scraper.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path

    Returns:
        Configured logger instance
    """
    package_logger = logging.getLogger('element_scraper')
    package_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(formatter)
            package_logger.addHandler(file_handler)
        except OSError as e:
            package_logger.warning(f"Could not create log file {log_file}: {e}")

    return package_logger


def save_results_to_json(results: Dict[str, Any], output_file: str) -> None:
    """
    Save results to a JSON file.

    Args:
        results: Results dictionary to save
        output_file: Output file path
    """
    logger.info(f"Saving results to JSON file: {output_file}")
    Path(output_file).parent.mkdir(parents=True, exist_ok=True)
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(results, f, indent=2, ensure_ascii=False, default=str)
    logger.info(f"Results saved successfully to {output_file}")


def print_summary(result: CrawlResult) -> None:
    """Print a formatted summary of a crawl."""
    stats = result.stats
    print("\n" + "=" * 60)
    print("ELEMENT SCRAPER SUMMARY")
    print("=" * 60)
    print(f"Total variations found: {stats.total_variations}")
    print(f"Successful pages: {stats.successful_pages}/{stats.total_pages}")
    print(f"Pages processed: {stats.processed_pages}")
    if result.report_path:
        print(f"Report saved to: {result.report_path}")
    if result.failed_urls:
        print(f"\nFailed pages: {len(result.failed_urls)}")
        for failure in result.failed_urls:
            print(f"   - {failure.url}: {failure.error}")
    print("=" * 60)


def validate_dependencies() -> bool:
    """
    Validate that all required dependencies are installed.

    Returns:
        True if all dependencies are available
    """
    required = {
        'playwright': 'playwright',
        'aiofiles': 'aiofiles',
        'yaml': 'pyyaml',
        'playwright_stealth': 'playwright-stealth',
    }
    missing_deps = [dist for module, dist in required.items() if importlib.util.find_spec(module) is None]

    if missing_deps:
        logger.error(f"Missing required dependencies: {missing_deps}")
        print("Missing required dependencies:")
        for dep in missing_deps:
            print(f"  - {dep}")
        print("\nInstall with: pip install " + " ".join(missing_deps))
        if 'playwright' in missing_deps:
            print("Also run: playwright install chromium")
        return False

    logger.debug("All required dependencies are available")
    return True


def clean_output(output_dir: str = 'output') -> bool:
    """Remove the output directory. Returns True if something was removed."""
    path = Path(output_dir)
    if not path.exists():
        return False
    shutil.rmtree(path)
    logger.info(f"🧹 Cleaned output directory: {path}")
    return True


def get_output_stats(output_dir: str = 'output', screenshot_dir: str = 'screenshots',
                     report_file: str = 'variations_report.html') -> Dict[str, Any]:
    """Report presence and size of the report and the number of saved screenshots."""
    stats = {'has_report': False, 'screenshot_count': 0, 'report_size': 0}

    report_path = Path(output_dir) / report_file
    if report_path.exists():
        stats['has_report'] = True
        stats['report_size'] = round(report_path.stat().st_size / 1024)

    screenshots_path = Path(output_dir) / screenshot_dir
    if screenshots_path.exists():
        stats['screenshot_count'] = len(list(screenshots_path.glob('*.png')))

    return stats


def open_report(report_path: str) -> bool:
    """Open a generated report in the default browser."""
    path = Path(report_path).resolve()
    if not path.exists():
        print("❌ Report not found. Run a scrape first to generate a report.")
        return False
    webbrowser.open(path.as_uri())
    print(f"📖 Opening report in browser: {path}")
    return True


def show_status(output_dir: str = 'output', screenshot_dir: str = 'screenshots',
                report_file: str = 'variations_report.html') -> None:
    stats = get_output_stats(output_dir, screenshot_dir, report_file)
    print("📊 Element Scraper Status\n")
    print(f"Report exists: {'✅' if stats['has_report'] else '❌'}")
    print(f"Screenshots: {stats['screenshot_count']}")
    if stats['has_report']:
        print(f"Report size: {stats['report_size']} KB")
