"""
API module for Gmail API requests.
Provides the HTTP helper and ordered parallel fetching.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import requests

from .config import GMAIL_ENDPOINT, REQUEST_TIMEOUT, MAX_PARALLEL_REQUESTS
from .errors import ProviderRequestFailed

logger = logging.getLogger(__name__)


# =============================================================================
# HTTP HELPERS
# =============================================================================

def _error_message(response: requests.Response) -> tuple[str, dict]:
    """Extract the provider error message and payload from a failed response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200] or response.reason or "", {}
    if not isinstance(payload, dict):
        return str(payload)[:200], {}
    error = payload.get("error")
    if isinstance(error, dict):
        return error.get("message", ""), payload
    return str(error or payload), payload


def gmail_request(
    method: str,
    endpoint: str,
    token: str,
    json_data: dict = None,
    params: dict = None,
    operation: str = "",
) -> dict:
    """
    Make a request to the Gmail API.

    Args:
        method: HTTP method
        endpoint: API endpoint (without base URL)
        token: Bearer access token
        json_data: JSON body
        params: Query parameters
        operation: Name of the calling operation, used in errors

    Returns:
        JSON response (empty dict for empty bodies)

    Raises:
        ProviderRequestFailed: Timeout, connection error or non-2xx response
    """
    url = f"{GMAIL_ENDPOINT}{endpoint}"
    headers = {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json"
    }

    try:
        response = requests.request(
            method, url, headers=headers, json=json_data, params=params, timeout=REQUEST_TIMEOUT
        )
    except requests.exceptions.Timeout:
        logger.error(f"Request timeout after {REQUEST_TIMEOUT}s: {endpoint}")
        raise ProviderRequestFailed(0, f"Request timeout after {REQUEST_TIMEOUT}s", operation)
    except requests.exceptions.RequestException as e:
        logger.error(f"Request failed: {e}")
        raise ProviderRequestFailed(0, str(e), operation)

    if 200 <= response.status_code < 300:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            logger.error(f"Non-JSON response {response.status_code}: {endpoint}")
            raise ProviderRequestFailed(
                response.status_code, f"Invalid JSON response: {response.text[:200]}", operation
            )

    message, payload = _error_message(response)
    logger.error(f"API error {response.status_code}: {message[:200]}")
    raise ProviderRequestFailed(response.status_code, message, operation, payload)


# =============================================================================
# PARALLEL REQUESTS
# =============================================================================

async def parallel_fetch(
    fetch_fn: Callable[[Any], Awaitable[Any]],
    items: list,
    max_parallel: Optional[int] = None,
) -> list:
    """
    Await fetch_fn for every item, at most max_parallel at a time.

    Args:
        fetch_fn: Coroutine function called for each item
        items: List of items to process
        max_parallel: Max concurrent calls (default: MAX_PARALLEL_REQUESTS)

    Returns:
        List of results in same order as items

    Raises:
        The first exception raised by any call
    """
    if not items:
        return []

    semaphore = asyncio.Semaphore(max_parallel or MAX_PARALLEL_REQUESTS)

    async def bounded(item):
        async with semaphore:
            return await fetch_fn(item)

    return list(await asyncio.gather(*(bounded(item) for item in items)))
