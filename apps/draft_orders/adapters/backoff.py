"""
Retry wrapper for a single Shopify call.

    resp = execute_with_retry(lambda: session.post(url, json=body), max_attempts=3)

`operation` makes exactly one HTTP request and returns the requests.Response.
429 / 5xx / transport errors are retried with exponential backoff
(initial_delay * 2**attempt), a 429 with a Retry-After header waits exactly
that long instead. Other 4xx are raised straight away.
"""

import time
import logging
from typing import Callable, Optional

import requests

from ..errors import RemoteAPIError, TransientRemoteError, RateLimitExhaustedError

logger = logging.getLogger(__name__)

TRANSPORT_ERRORS = (requests.ConnectionError, requests.Timeout)


def retry_after_seconds(resp: requests.Response) -> Optional[float]:
    """Server-specified delay from the Retry-After header, in seconds (Shopify sends e.g. "2.0")."""
    raw = resp.headers.get("Retry-After")
    if raw is None:
        return None
    try:
        wait = float(raw)
    except (TypeError, ValueError):
        return None
    return max(0.0, wait)


def _body(resp: requests.Response):
    try:
        return resp.json()
    except ValueError:
        return resp.text


def execute_with_retry(operation: Callable[[], requests.Response],
                       max_attempts: int = 3,
                       initial_delay: float = 1.0,
                       *,
                       sleep: Callable[[float], None] = time.sleep,
                       label: str = "shopify") -> requests.Response:
    """
    Run `operation` until it succeeds or `max_attempts` retries are used up.

    Returns the successful response. Raises RateLimitExhaustedError,
    TransientRemoteError (last status/body) or RemoteAPIError.
    """
    attempt = 0
    while True:
        try:
            r = operation()
        except TRANSPORT_ERRORS as e:
            if attempt >= max_attempts:
                logger.error(f"[{label}] network error, giving up after {attempt + 1} attempts: {e}")
                raise TransientRemoteError(f"Network error: {e}") from e
            delay = initial_delay * (2 ** attempt)
            attempt += 1
            logger.warning(f"[{label}] network error, retrying in {delay:.2f}s (attempt {attempt}/{max_attempts}): {e}")
            sleep(delay)
            continue

        logger.info(f"[{label}] response status={r.status_code}")

        if r.status_code < 400:
            return r

        if r.status_code == 429:
            if attempt >= max_attempts:
                logger.error(f"[{label}] max retries reached for rate limiting")
                raise RateLimitExhaustedError(
                    "Shopify API rate limit exceeded. Please try again later.",
                    429, _body(r),
                )
            delay = retry_after_seconds(r)
            if delay is None:
                delay = initial_delay * (2 ** attempt)
            attempt += 1
            logger.warning(f"[{label}] rate limited, retrying in {delay:.2f}s (attempt {attempt}/{max_attempts})")
            sleep(delay)
            continue

        body = _body(r)
        logger.error(f"[{label}] API error status={r.status_code} body={str(body)[:300]}")

        if r.status_code >= 500:
            if attempt >= max_attempts:
                raise TransientRemoteError(
                    f"Shopify API error: {r.status_code} - {body}", r.status_code, body
                )
            delay = initial_delay * (2 ** attempt)
            attempt += 1
            logger.warning(f"[{label}] server error, retrying in {delay:.2f}s (attempt {attempt}/{max_attempts})")
            sleep(delay)
            continue

        raise RemoteAPIError(f"Shopify API error: {r.status_code} - {body}", r.status_code, body)
