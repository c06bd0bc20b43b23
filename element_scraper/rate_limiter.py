"""
Pacing module for a crawl session.
Implements the fixed delay between pages and an optional per-domain request cap.
"""

import asyncio
import logging
import time
from collections import defaultdict
from typing import Dict, List
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Per-domain requests-per-minute cap.
    A limit of 0 disables the cap.
    """

    def __init__(self, max_requests_per_minute: int = 0):
        self.max_requests_per_minute = max_requests_per_minute
        self.request_times: Dict[str, List[float]] = defaultdict(list)
        if max_requests_per_minute:
            logger.info(f"Rate limiter initialized: max {max_requests_per_minute} requests/minute per domain")

    def _get_domain(self, url: str) -> str:
        parsed = urlparse(url)
        return parsed.netloc or parsed.path.split('/')[0]

    def _clean_old_requests(self, domain: str, current_time: float) -> None:
        """Remove request timestamps older than 60 seconds."""
        cutoff_time = current_time - 60.0
        self.request_times[domain] = [
            req_time for req_time in self.request_times[domain]
            if req_time > cutoff_time
        ]

    async def wait_if_needed(self, url: str) -> None:
        """
        Wait until a request to the URL's domain fits under the cap, then record it.

        Args:
            url: URL about to be requested
        """
        if not self.max_requests_per_minute:
            return

        domain = self._get_domain(url)
        current_time = time.time()
        self._clean_old_requests(domain, current_time)

        if len(self.request_times[domain]) >= self.max_requests_per_minute:
            oldest_request = min(self.request_times[domain])
            wait_time = 60.0 - (current_time - oldest_request) + 0.1
            if wait_time > 0:
                logger.info(f"Rate limit reached for {domain}: waiting {wait_time:.2f}s")
                await asyncio.sleep(wait_time)
                current_time = time.time()
                self._clean_old_requests(domain, current_time)

        self.request_times[domain].append(current_time)


class DelayManager:
    """Courtesy delay between page visits."""

    def __init__(self, delay: float = 2.0):
        self.delay = delay

    async def wait_between_pages(self) -> None:
        if self.delay <= 0:
            return
        logger.info(f"⏳ Waiting {self.delay:.2f}s before next page...")
        await asyncio.sleep(self.delay)
