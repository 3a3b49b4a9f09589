#!/usr/bin/env python3
"""
Gemini generation API integration.

Provides one-shot grounded generation (used by the refresh job) and SSE
streaming (used by the content expander). API keys are resolved per category:
a category-specific key, then a keyed-lookup URL, then the shared key.
"""

import json
import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Optional

import aiohttp

from core.exceptions import ConfigurationError, GenerationError, UpstreamError, UpstreamTimeoutError
from integrations.http_retry import request_with_retry

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


def extract_candidate_text(data: Dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate; empty string if absent."""
    candidates = (data or {}).get('candidates') or []
    if not candidates:
        return ''
    parts = ((candidates[0] or {}).get('content') or {}).get('parts') or []
    return ''.join(part.get('text', '') for part in parts if isinstance(part, dict))


class GeminiClient:
    """Async client for Gemini generateContent / streamGenerateContent."""

    def __init__(self, session: aiohttp.ClientSession,
                 api_key: Optional[str] = None,
                 category_keys: Optional[Dict[str, str]] = None,
                 key_lookup_url: Optional[str] = None,
                 model: str = "gemini-2.5-flash",
                 attempts: int = 3,
                 retry_delay: float = 5.0,
                 timeout: float = 60.0,
                 key_lookup_timeout: float = 5.0,
                 stream_connect_timeout: float = 20.0):
        self.session = session
        self.api_key = api_key
        self.category_keys = category_keys or {}
        self.key_lookup_url = key_lookup_url
        self.model = model
        self.attempts = attempts
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.key_lookup_timeout = key_lookup_timeout
        self.stream_connect_timeout = stream_connect_timeout
        self.temperature = 0.9
        self.max_output_tokens = 2048
        self._looked_up_keys: Dict[str, str] = {}

    async def resolve_api_key(self, category: Optional[str] = None) -> str:
        """
        Resolve the API key to use for a category.

        Raises:
            ConfigurationError: If no key source yields a key
        """
        if category and category in self.category_keys:
            return self.category_keys[category]

        if self.key_lookup_url:
            cache_key = category or ''
            if cache_key not in self._looked_up_keys:
                key = await self._lookup_key(category)
                if key:
                    self._looked_up_keys[cache_key] = key
            if cache_key in self._looked_up_keys:
                return self._looked_up_keys[cache_key]

        if self.api_key:
            return self.api_key

        raise ConfigurationError("GEMINI_API_KEY")

    async def _lookup_key(self, category: Optional[str]) -> Optional[str]:
        """Fetch a key from the lookup URL; failures fall through to the shared key."""
        params = {'category': category} if category else None
        try:
            body = await request_with_retry(
                self.session, 'GET', self.key_lookup_url, 'gemini-key-lookup',
                params=params,
                timeout=self.key_lookup_timeout,
                max_attempts=3,
                as_text=True,
            )
        except UpstreamError as e:
            logger.warning(f"Gemini key lookup failed for {category or 'default'}: {e.message}")
            return None

        body = (body or '').strip()
        try:
            parsed = json.loads(body)
        except ValueError:
            return body or None

        if isinstance(parsed, dict):
            for field in ('key', 'api_key', 'apiKey'):
                if parsed.get(field):
                    return str(parsed[field])
            return None
        if isinstance(parsed, str):
            return parsed or None
        return None

    def _payload(self, prompt: str, with_generation_config: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            'contents': [{'parts': [{'text': prompt}]}],
            'tools': [{'google_search': {}}],
        }
        if with_generation_config:
            payload['generationConfig'] = {
                'temperature': self.temperature,
                'maxOutputTokens': self.max_output_tokens,
            }
        return payload

    async def generate(self, prompt: str, category: str) -> str:
        """
        Generate text with fixed-delay retries.

        Args:
            prompt: Prompt text
            category: Category used for key resolution and error context

        Returns:
            Generated text (possibly empty)

        Raises:
            ConfigurationError: If no API key is available
            GenerationError: If every attempt failed
        """
        api_key = await self.resolve_api_key(category)
        url = f"{GEMINI_BASE_URL}/{self.model}:generateContent"

        last_error: Optional[Exception] = None
        for attempt in range(1, self.attempts + 1):
            try:
                data = await request_with_retry(
                    self.session, 'POST', url, 'gemini',
                    params={'key': api_key},
                    json_body=self._payload(prompt),
                    timeout=self.timeout,
                    max_attempts=1,
                )
                text = extract_candidate_text(data)
                logger.info(f"Gemini returned {len(text)} characters for {category}")
                return text
            except UpstreamError as e:
                last_error = e
                if attempt < self.attempts:
                    logger.warning(
                        f"Gemini request failed (attempt {attempt}/{self.attempts}) for {category}. "
                        f"Retrying in {self.retry_delay}s: {e.message}"
                    )
                    await asyncio.sleep(self.retry_delay)

        logger.error(f"Gemini request failed after {self.attempts} attempts for {category}: {last_error}")
        raise GenerationError(category, self.attempts, last_error)

    async def stream(self, prompt: str, category: Optional[str] = None) -> AsyncIterator[str]:
        """
        Stream generated text chunks as they arrive.

        Only establishing the stream is bounded by `stream_connect_timeout`;
        reading the body is not.

        Yields:
            Non-empty text chunks in arrival order

        Raises:
            ConfigurationError: If no API key is available
            UpstreamTimeoutError: If the stream could not be established in time
            UpstreamError: On a non-2xx response or transport error
        """
        api_key = await self.resolve_api_key(category)
        url = f"{GEMINI_BASE_URL}/{self.model}:streamGenerateContent"
        headers = {'x-goog-api-key': api_key, 'Content-Type': 'application/json'}

        try:
            response = await asyncio.wait_for(
                self.session.post(
                    url,
                    params={'alt': 'sse'},
                    json=self._payload(prompt, with_generation_config=False),
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=None),
                ),
                timeout=self.stream_connect_timeout,
            )
        except asyncio.TimeoutError:
            raise UpstreamTimeoutError('gemini', self.stream_connect_timeout)
        except aiohttp.ClientError as e:
            raise UpstreamError('gemini', f"transport error: {e}")

        try:
            if response.status >= 300:
                body = await response.text()
                raise UpstreamError('gemini', f"HTTP {response.status}: {body[:200]}", status=response.status)

            async for raw_line in response.content:
                text = self._parse_sse_line(raw_line.decode('utf-8', errors='replace'))
                if text:
                    yield text
        except aiohttp.ClientError as e:
            raise UpstreamError('gemini', f"stream interrupted: {e}")
        finally:
            response.release()

    @staticmethod
    def _parse_sse_line(line: str) -> Optional[str]:
        """Extract candidate text from one `data: {...}` line; other lines yield None."""
        line = line.strip()
        if not line.startswith('data:'):
            return None
        payload = line[len('data:'):].strip()
        if not payload:
            return None
        try:
            data = json.loads(payload)
        except ValueError:
            logger.debug(f"Skipping malformed SSE line: {payload[:100]}")
            return None
        return extract_candidate_text(data) or None
