"""
Low-level HTTP request library for Meteoblue API communication.
This module handles GET requests with retry on timeout and provider error handling.
"""
import asyncio
import logging
import re

import aiohttp


_LOGGER = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10  # seconds, multiplied by attempt number for each retry
REQUEST_ATTEMPTS = 3  # maximum number of retry attempts

_APIKEY_PATTERN = re.compile(r"(apikey=)[^&]+")


class ApiResponseError(Exception):
    """Exception raised when the provider answers with an error body."""
    def __init__(self, status: int, error_json: dict):
        self.status = status
        self.error_json = error_json
        message = error_json.get("error_message") or error_json.get("error")
        super().__init__(f"HTTP {status}: {message}")


def redact(url: str) -> str:
    """Hide the API key in a URL before it is logged."""
    return _APIKEY_PATTERN.sub(r"\1***", url)


async def make_request(
    url: str,
    params: dict = None,
    headers: dict = None,
    timeout: int = REQUEST_TIMEOUT,
    max_attempts: int = REQUEST_ATTEMPTS,
):
    """
    Make a GET request and return the parsed JSON body.

    Timeouts are retried with a timeout growing per attempt; every other
    error is raised immediately.

    Raises:
        asyncio.TimeoutError: If all retry attempts time out
        ApiResponseError: If the provider returns an error JSON body
        ValueError: If the response is not JSON
        aiohttp.ClientError: For connection level failures
    """
    headers = headers or {"accept": "application/json"}

    for attempt in range(max_attempts):
        timeout_config = aiohttp.ClientTimeout(total=timeout * (attempt + 1))
        try:
            async with aiohttp.ClientSession(timeout=timeout_config) as session:
                async with session.get(url, headers=headers, params=params) as response:
                    return await _process_response(response, redact(str(response.url)))
        except (asyncio.TimeoutError, TimeoutError):
            if attempt < max_attempts - 1:
                _LOGGER.debug("Timeout on GET %s, retrying (attempt %s)", redact(url), attempt + 1)
                continue
            _LOGGER.warning("Timeout on GET %s after %s attempts", redact(url), max_attempts)
            raise
    return None


async def _process_response(response, url: str):
    """
    Extract JSON from a response.

    Args:
        response: aiohttp response object
        url: Request URL, already redacted (for logging)

    Returns:
        Parsed JSON response
    """
    content_type = response.headers.get("Content-Type", "")

    if response.status == 200:
        if "application/json" in content_type:
            return await response.json()
        text = await response.text()
        _LOGGER.warning(
            "Unexpected content type in successful response: %s from %s",
            content_type, url,
        )
        raise ValueError(f"Expected JSON but got {content_type}: {text[:200]}")

    if "application/json" in content_type:
        error_json = await response.json()
        if isinstance(error_json, dict):
            raise ApiResponseError(response.status, error_json)
        raise ValueError(f"HTTP {response.status} from {url}: {error_json}")

    # Non-JSON error response (e.g., HTML error page)
    text = await response.text()
    _LOGGER.warning(
        "Received non-JSON error response from %s: status %s, content-type: %s, body preview: %s",
        url, response.status, content_type, text[:200],
    )
    raise ValueError(
        f"HTTP {response.status} with {content_type} "
        f"(expected application/json) from {url}"
    )
