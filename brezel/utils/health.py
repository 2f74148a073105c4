"""
HTTP health polling.

``check_http`` mirrors ``curl -s -f``: any status below 400 is healthy and
connection errors are reported as unhealthy rather than raised.
"""

import logging
import time
from typing import Any, Callable, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


def check_http(url: str, timeout: float = DEFAULT_TIMEOUT) -> bool:
    """Return True if a GET to ``url`` succeeds with a non-error status."""
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        logger.debug(f"Health check {url} failed: {e}")
        return False
    return response.status_code < 400


def wait_for_http(
    url: str,
    max_attempts: int = 30,
    interval: float = 2.0,
    timeout: float = DEFAULT_TIMEOUT,
    on_attempt: Optional[Callable[[int, int], None]] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> bool:
    """
    Poll ``url`` until it is healthy or the retry budget runs out.

    Args:
        url: Health endpoint
        max_attempts: Number of requests before giving up
        interval: Seconds to wait between attempts
        timeout: Per-request timeout in seconds
        on_attempt: Called as ``on_attempt(attempt, max_attempts)`` after each
            failed attempt except the last
        sleep: Sleep function (defaults to time.sleep)

    Returns:
        True once the endpoint responds successfully, False if every attempt failed
    """
    sleep = sleep or time.sleep
    for attempt in range(1, max_attempts + 1):
        if check_http(url, timeout=timeout):
            return True
        if attempt == max_attempts:
            break
        if on_attempt:
            on_attempt(attempt, max_attempts)
        sleep(interval)
    logger.debug(f"{url} not healthy after {max_attempts} attempts")
    return False


def fetch_json(url: str, timeout: float = DEFAULT_TIMEOUT) -> Any:
    """
    Best-effort GET for status reports.

    Returns:
        Parsed JSON, the raw body if it is not JSON, or None on request failure
    """
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        logger.debug(f"Status request {url} failed: {e}")
        return None
    try:
        return response.json()
    except ValueError:
        return response.text
