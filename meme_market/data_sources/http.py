"""
HTTP helper with retry and exponential backoff.

Timeouts, connection errors, truncated bodies, rate limiting (429) and
server errors (5xx) are retried; other client errors, other request
failures and malformed JSON are not. Every failure surfaces as FetchError.
"""

import logging
import time
from typing import Any, Callable, Dict, Optional
import requests
from meme_market.errors import FetchError, RateLimitError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay before retry number attempt + 1: base_delay * 2**attempt."""
    return base_delay * (2 ** attempt)


def get_json(
    session: requests.Session,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    max_retries: int = 3,
    retry_delay: float = 1.0,
    timeout: float = 15.0,
    sleep: Callable[[float], None] = time.sleep
) -> Any:
    """
    GET a URL and decode its JSON body, retrying transient failures.

    Preconditions:
        - max_retries >= 1 (total number of attempts)

    Postconditions:
        - Returns the decoded JSON body of the first successful response
        - Sleeps retry_delay * 2**attempt between attempts

    Args:
        session: requests session used for the call
        url: Request URL
        params: Query parameters
        headers: Extra request headers
        max_retries: Maximum number of attempts
        retry_delay: Base backoff delay in seconds
        timeout: Per-request timeout in seconds
        sleep: Sleep function (injectable for tests)

    Returns:
        Decoded JSON

    Raises:
        RateLimitError: If every attempt was answered with HTTP 429
        FetchError: On non-retryable errors or when attempts are exhausted
    """
    if max_retries < 1:
        raise ValueError("max_retries must be at least 1")

    last_error = None

    for attempt in range(max_retries):
        try:
            response = session.get(url, params=params, headers=headers, timeout=timeout)

            if response.status_code in RETRYABLE_STATUS:
                if response.status_code == 429:
                    last_error = RateLimitError(f"Rate limited by {url}")
                else:
                    last_error = FetchError(f"HTTP error {response.status_code} from {url}")
            else:
                response.raise_for_status()
                try:
                    return response.json()
                except ValueError as e:
                    raise FetchError(f"Invalid JSON from {url}: {e}") from e

        except requests.exceptions.HTTPError as e:
            # Client errors other than 429 are not retried
            raise FetchError(f"HTTP error: {e}") from e

        except (
            requests.exceptions.Timeout,
            requests.exceptions.ConnectionError,
            requests.exceptions.ChunkedEncodingError
        ) as e:
            last_error = FetchError(f"Connection error: {e}")

        except requests.exceptions.RequestException as e:
            raise FetchError(f"Request failed: {e}") from e

        if attempt < max_retries - 1:
            delay = backoff_delay(attempt, retry_delay)
            logger.warning(
                "%s (attempt %d/%d), retrying in %.1fs",
                last_error, attempt + 1, max_retries, delay
            )
            sleep(delay)

    logger.error("Giving up on %s after %d attempts", url, max_retries)
    if isinstance(last_error, RateLimitError):
        raise RateLimitError(f"{last_error} after {max_retries} attempts")
    raise FetchError(f"Failed to fetch {url} after {max_retries} attempts: {last_error}")
