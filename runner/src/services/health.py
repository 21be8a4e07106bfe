"""
HTTP health checks for deployed services.
"""

import logging
from typing import Iterable, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

class HttpHealthCheck:
    """
    ``get(url) -> (status, body)`` plus a boolean readiness check.
    Without explicit codes, any 2xx or 3xx response counts as healthy.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        expected_status_codes: Optional[Iterable[int]] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.expected_status_codes = set(expected_status_codes) if expected_status_codes else None
        self.client = client

    def get(self, url: Optional[str] = None) -> Tuple[int, str]:
        url = url or self.url
        if self.client is not None:
            response = self.client.get(url, timeout=self.timeout)
        else:
            with httpx.Client(follow_redirects=True) as client:
                response = client.get(url, timeout=self.timeout)
        return response.status_code, response.text

    def is_healthy(self, status_code: int) -> bool:
        if self.expected_status_codes is not None:
            return status_code in self.expected_status_codes
        return 200 <= status_code < 400

    def check(self, url: Optional[str] = None) -> bool:
        url = url or self.url
        try:
            status_code, _ = self.get(url)
        except httpx.HTTPError as e:
            logger.info(f"Health check {url} failed: {e}")
            return False

        healthy = self.is_healthy(status_code)
        if not healthy:
            logger.info(f"Health check {url} returned {status_code}")
        return healthy

    def __call__(self) -> bool:
        return self.check()
