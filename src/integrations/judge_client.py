#!/usr/bin/env python3
"""
Semantic judge integration.

The pipeline asks a language model three kinds of questions: whether a video
title matches a headline, whether an image filename shows only the subject,
and which items in a batch are duplicates. Every caller depends on the narrow
SemanticJudge interface so tests can substitute a deterministic fake.

Two backends are provided:
- OpenAICompatibleJudge: chat completions via the OpenAI SDK against any
  OpenAI-compatible endpoint (Groq by default)
- ProxyJudge: a plain-text similarity proxy that takes a prompt body and
  returns the model's answer
"""

import re
import json
import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol

import aiohttp
from openai import AsyncOpenAI, OpenAIError

from core.exceptions import ConfigurationError, JudgeUnavailableError, UpstreamError
from core.prompts import JudgePrompts
from integrations.http_retry import request_with_retry

logger = logging.getLogger(__name__)

_YES = re.compile(r'^\W*yes\b', re.IGNORECASE)


def _preview(text: str, limit: int = 300) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def is_affirmative(answer: str) -> bool:
    """True when the answer starts with the word "yes"."""
    return bool(_YES.match(answer or ''))


class SemanticJudge(Protocol):
    """Capability interface for judge-based decisions."""

    async def is_same_event(self, query: str, title: str) -> bool:
        ...

    async def is_relevant_image(self, filename: str, subject: str) -> bool:
        ...

    async def find_duplicates(self, items: List[Dict[str, Any]]) -> str:
        ...


class OpenAICompatibleJudge:
    """Judge backed by an OpenAI-compatible chat completions API."""

    def __init__(self, api_key: str, base_url: Optional[str] = None,
                 model: str = "openai/gpt-oss-20b", timeout: float = 30.0):
        """
        Initialize the judge client.

        Args:
            api_key: API key for the chat completions endpoint
            base_url: OpenAI-compatible base URL; None means api.openai.com
            model: Model name
            timeout: Request timeout in seconds
        """
        if not api_key:
            raise ConfigurationError("JUDGE_API_KEY")

        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)
        self.model = model

    async def complete(self, system: str, user: str, retries: int = 0,
                       retry_delay: float = 2.0) -> str:
        """
        Run a single-turn chat completion.

        Args:
            system: System message
            user: User message
            retries: Extra attempts after the first failure
            retry_delay: Fixed delay between attempts in seconds

        Returns:
            Assistant message content ("" when empty)

        Raises:
            JudgeUnavailableError: If every attempt failed
        """
        logger.debug(f"Judge request [{self.model}] user prompt: {_preview(user)}")

        last_error: Optional[Exception] = None
        for attempt in range(retries + 1):
            try:
                response = await self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system},
                        {"role": "user", "content": user},
                    ],
                    stream=False,
                )
                content = response.choices[0].message.content or ""
                logger.debug(f"Judge response: {_preview(content)}")
                return content
            except OpenAIError as e:
                last_error = e
                if attempt < retries:
                    logger.warning(f"Judge call failed, retrying in {retry_delay}s: {e}")
                    await asyncio.sleep(retry_delay)

        logger.error(f"Judge call failed: {last_error}")
        raise JudgeUnavailableError("chat completion failed", last_error)

    async def is_same_event(self, query: str, title: str) -> bool:
        answer = await self.complete(JudgePrompts.SYSTEM_PROMPT, JudgePrompts.get_same_event_prompt(query, title))
        return is_affirmative(answer)

    async def is_relevant_image(self, filename: str, subject: str) -> bool:
        answer = await self.complete(
            JudgePrompts.SYSTEM_PROMPT, JudgePrompts.get_image_relevance_prompt(filename, subject)
        )
        return is_affirmative(answer)

    async def find_duplicates(self, items: List[Dict[str, Any]]) -> str:
        return await self.complete(JudgePrompts.SYSTEM_PROMPT, JudgePrompts.get_duplicates_prompt(items))

    async def close(self) -> None:
        await self.client.close()


class ProxyJudge:
    """Judge backed by a plain-text proxy endpoint."""

    def __init__(self, session: aiohttp.ClientSession, url: str, timeout: float = 60.0):
        if not url:
            raise ConfigurationError("SIMILARITY_PROXY_URL")
        self.session = session
        self.url = url
        self.timeout = timeout

    async def ask(self, prompt: str) -> str:
        """
        POST the prompt as text/plain and return the raw response text.

        Raises:
            JudgeUnavailableError: If the proxy request failed
        """
        logger.debug(f"Proxy request payload_length={len(prompt)}")
        try:
            text = await request_with_retry(
                self.session, 'POST', self.url, 'similarity-proxy',
                data=prompt.encode('utf-8'),
                headers={'Content-Type': 'text/plain'},
                timeout=self.timeout,
                max_attempts=1,
                as_text=True,
            )
        except UpstreamError as e:
            raise JudgeUnavailableError("similarity proxy request failed", e)
        logger.debug(f"Proxy response_length={len(text or '')}")
        return text or ''

    @staticmethod
    def _answer_text(raw: str) -> str:
        """Unwrap `{"json": "..."}`-style envelopes around a short answer."""
        try:
            parsed = json.loads(raw)
        except ValueError:
            return raw
        if isinstance(parsed, dict):
            for value in parsed.values():
                if isinstance(value, str):
                    return value
        if isinstance(parsed, str):
            return parsed
        return raw

    async def is_same_event(self, query: str, title: str) -> bool:
        raw = await self.ask(JudgePrompts.get_same_event_prompt(query, title))
        return is_affirmative(self._answer_text(raw))

    async def is_relevant_image(self, filename: str, subject: str) -> bool:
        raw = await self.ask(JudgePrompts.get_image_relevance_prompt(filename, subject))
        return is_affirmative(self._answer_text(raw))

    async def find_duplicates(self, items: List[Dict[str, Any]]) -> str:
        return await self.ask(JudgePrompts.get_duplicates_prompt(items))

    async def close(self) -> None:
        """The session is owned by the caller."""
        return None


def create_judge(config, session: aiohttp.ClientSession, prefer_proxy: bool = False):
    """
    Build the configured judge backend.

    Args:
        config: Application Config
        session: Shared aiohttp session (used by the proxy backend)
        prefer_proxy: Use the similarity proxy when both backends are configured

    Returns:
        A SemanticJudge implementation, or None when no backend is configured
    """
    integrations = config.integrations
    if integrations.similarity_proxy_url and (prefer_proxy or not integrations.judge_api_key):
        return ProxyJudge(session, integrations.similarity_proxy_url)
    if integrations.judge_api_key:
        return OpenAICompatibleJudge(
            api_key=integrations.judge_api_key,
            base_url=integrations.judge_base_url,
            model=integrations.judge_model,
        )
    logger.warning("No judge backend configured; judge-based checks will use fallbacks")
    return None
