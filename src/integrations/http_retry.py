#!/usr/bin/env python3
"""
Shared aiohttp request helper with exponential backoff.

Retries 403/429/5xx responses, timeouts and transport errors; any other
non-2xx status fails immediately.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from core.exceptions import ErrorRecovery, UpstreamError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (compatible; PaparazziNews/1.0)'
}


def create_session(timeout: float = 30.0) -> aiohttp.ClientSession:
    """Create a client session with the default headers and an overall timeout."""
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=timeout),
        headers=DEFAULT_HEADERS,
    )


async def request_with_retry(session: aiohttp.ClientSession,
                             method: str,
                             url: str,
                             service: str,
                             params: Optional[Dict[str, Any]] = None,
                             json_body: Optional[Any] = None,
                             data: Optional[Any] = None,
                             headers: Optional[Dict[str, str]] = None,
                             timeout: float = 10.0,
                             max_attempts: int = 5,
                             base_delay: float = 0.5,
                             as_text: bool = False) -> Any:
    """
    Perform an HTTP request, retrying transient failures with jittered backoff.

    Args:
        session: Open aiohttp session
        method: HTTP method
        url: Target URL
        service: Service name used in errors and logs
        params: Query string parameters
        json_body: JSON request body
        data: Raw request body
        headers: Extra request headers
        timeout: Per-attempt timeout in seconds
        max_attempts: Total attempts including the first
        base_delay: Backoff delay after the first failure
        as_text: Return the body as text instead of decoded JSON

    Returns:
        Decoded JSON (or text) of the first 2xx response

    Raises:
        UpstreamError: On a non-retryable status or when attempts are exhausted
        UpstreamTimeoutError: When the last attempt timed out
    """
    last_error: Optional[UpstreamError] = None

    for attempt in range(max_attempts):
        try:
            async with session.request(
                method,
                url,
                params=params,
                json=json_body,
                data=data,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as response:
                if 200 <= response.status < 300:
                    if as_text:
                        return await response.text()
                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        raise UpstreamError(service, f"invalid JSON response: {e}", status=response.status)

                body = await response.text()
                error = UpstreamError(service, f"HTTP {response.status}: {body[:200]}", status=response.status)
                if not ErrorRecovery.is_retryable_status(response.status):
                    raise error
                last_error = error

        except asyncio.TimeoutError:
            last_error = UpstreamTimeoutError(service, timeout)
        except aiohttp.ClientError as e:
            last_error = UpstreamError(service, f"transport error: {e}")

        if attempt < max_attempts - 1:
            delay = ErrorRecovery.get_retry_delay(attempt, base_delay=base_delay)
            logger.warning(
                f"{service} request failed (attempt {attempt + 1}/{max_attempts}): {last_error.message}. "
                f"Retrying in {delay:.2f}s"
            )
            await asyncio.sleep(delay)

    logger.error(f"{service} request failed after {max_attempts} attempts: {last_error.message}")
    raise last_error
