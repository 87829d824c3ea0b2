"""
Low-level HTTP request library for Gigaset Elements cloud communication.
This module handles all HTTP requests with automatic retry logic and maps
failures onto the integration's error taxonomy.
"""
import asyncio
import logging

import aiohttp

from .errors import RemoteRejected, TransportError

_LOGGER = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10  # seconds, multiplied by attempt number for each retry
REQUEST_ATTEMPTS = 3  # maximum number of retry attempts

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE")


async def make_request(
    session: aiohttp.ClientSession,
    method: str,
    url: str,
    headers: dict = None,
    payload: dict = None,
    data: dict = None,
    params: dict = None,
    expect_json: bool = True,
    timeout: int = REQUEST_TIMEOUT,
    max_attempts: int = REQUEST_ATTEMPTS,
):
    """
    Make an HTTP request with automatic retry on timeout.

    The session is owned by the caller; it carries the authentication cookies.

    Args:
        session: aiohttp session used for the request
        method: HTTP method (GET, POST, PUT, DELETE)
        url: Target URL for the request
        headers: HTTP headers dictionary (optional)
        payload: JSON payload (optional)
        data: form payload (optional)
        params: URL query parameters (optional)
        expect_json: parse the body as JSON; otherwise return the text
        timeout: Base timeout in seconds (multiplied by attempt number for each retry)
        max_attempts: Maximum number of retry attempts

    Returns:
        Parsed JSON response, or the response text if expect_json is False

    Raises:
        TransportError: If the service cannot be reached or all attempts time out
        RemoteRejected: If the service answers with a non-success status
    """
    method = method.upper()
    if method not in SUPPORTED_METHODS:
        raise ValueError(f"Unsupported HTTP method: {method}")

    for attempt in range(max_attempts):
        timeout_config = aiohttp.ClientTimeout(total=timeout * (attempt + 1))
        try:
            async with session.request(
                method,
                url,
                headers=headers,
                json=payload,
                data=data,
                params=params,
                timeout=timeout_config,
            ) as response:
                return await _process_response(response, method, url, expect_json)

        except (asyncio.TimeoutError, TimeoutError) as e:
            if attempt < max_attempts - 1:
                _LOGGER.debug("Timeout on %s %s (attempt %s), retrying", method, url, attempt + 1)
                continue
            _LOGGER.warning(
                "Timeout on %s request to %s after %s attempts",
                method, url, max_attempts
            )
            raise TransportError(f"Timeout on {method} {url} after {max_attempts} attempts") from e

        except aiohttp.ClientError as e:
            # For non-timeout errors, don't retry
            raise TransportError(f"{method} {url} failed: {e}") from e

    raise TransportError(f"{method} {url} failed")


async def _process_response(response: aiohttp.ClientResponse, method: str, url: str, expect_json: bool):
    """
    Process HTTP response and extract its payload.

    Raises:
        RemoteRejected: For non-2xx responses or unexpected content types
    """
    content_type = response.headers.get("Content-Type", "")

    if not 200 <= response.status < 300:
        text = await response.text()
        _LOGGER.debug(
            "Error response from %s %s: status %s, body preview: %s",
            method, url, response.status, text[:200]
        )
        raise RemoteRejected(response.status, method, url, text[:200])

    if not expect_json:
        return await response.text()

    if response.status == 204:
        return None

    if "application/json" not in content_type:
        text = await response.text()
        _LOGGER.warning(
            "Unexpected content type in successful response: %s (status %s) from %s",
            content_type, response.status, url
        )
        raise RemoteRejected(
            response.status, method, url,
            f"Expected JSON but got {content_type}: {text[:200]}"
        )
    return await response.json()
