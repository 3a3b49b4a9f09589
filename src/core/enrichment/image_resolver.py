#!/usr/bin/env python3
"""
Profile image resolution for news subjects.

Searches Wikimedia Commons for the subject, filters out documents, asks the
judge whether each candidate filename shows only the subject, and picks one.
Always returns a URL: any failure degrades to the placeholder image.
"""

import re
import random
import asyncio
import logging
from typing import List, Optional, Protocol
from urllib.parse import unquote, urlparse

from core.config import FALLBACK_IMAGE_URL
from core.exceptions import ErrorRecovery, JudgeUnavailableError, UpstreamError
from core.models.news import Category
from core.text_sanitizer import normalize_subject_name

logger = logging.getLogger(__name__)

_DOCUMENT_EXTENSIONS = re.compile(r'\.(doc|docx|txt|odt|rtf)')
_IMAGE_EXTENSIONS = re.compile(r'\.(jpg|jpeg|png|gif|webp|svg)(\?|$)')

MIN_NAME_TOKEN_LENGTH = 3
DEFAULT_JUDGE_CONCURRENCY = 8


class ImageSearch(Protocol):
    async def search_images(self, query: str) -> List[str]:
        ...


def is_valid_image_url(url: Optional[str]) -> bool:
    """Reject document formats; accept common image extensions or Commons thumbnail paths."""
    if not url:
        return False
    lowered = url.lower()
    if '.pdf' in lowered or _DOCUMENT_EXTENSIONS.search(lowered):
        return False
    if _IMAGE_EXTENSIONS.search(lowered):
        return True
    return '/thumb/' in lowered


def filename_of(url: str) -> str:
    """Decoded last path segment of a URL."""
    path = urlparse(url).path
    return unquote(path.rsplit('/', 1)[-1])


def filename_matches_subject(url: str, subject: str) -> bool:
    """True when the filename contains any subject-name token longer than two characters."""
    filename = filename_of(url).lower().replace('_', ' ')
    tokens = [token for token in subject.lower().split() if len(token) >= MIN_NAME_TOKEN_LENGTH]
    if not tokens:
        return False
    return any(token in filename for token in tokens)


class ImageResolver:
    """Resolves a single image URL for a news subject."""

    def __init__(self, search: ImageSearch, judge=None,
                 fallback_url: str = FALLBACK_IMAGE_URL,
                 rng: Optional[random.Random] = None,
                 judge_concurrency: int = DEFAULT_JUDGE_CONCURRENCY):
        """
        Args:
            search: Image search client (e.g. WikimediaClient)
            judge: SemanticJudge used for relevance checks; None disables them
            fallback_url: Placeholder returned when nothing better is found
            rng: Random source for choosing among equally good candidates
            judge_concurrency: Most relevance checks in flight at once, across all resolves
        """
        self.search = search
        self.judge = judge
        self.fallback_url = fallback_url
        self.rng = rng or random.Random()
        self.judge_concurrency = max(1, judge_concurrency)
        self._judge_slots: Optional[asyncio.Semaphore] = None

    async def resolve(self, subject_name: str, category: Category) -> str:
        """
        Resolve an image for a subject. Never raises.

        Args:
            subject_name: Subject as generated (may list several people)
            category: Category whose search hint qualifies the first query

        Returns:
            A non-empty image URL
        """
        try:
            return await self._resolve(subject_name, category)
        except Exception as e:
            logger.warning(f"Image resolution failed for '{subject_name}', using placeholder: {e}")
            return self.fallback_url

    async def _resolve(self, subject_name: str, category: Category) -> str:
        subject = normalize_subject_name(subject_name)
        if not subject:
            return self.fallback_url

        queries = [
            (f"{subject} {category.search_hint}", True),
            (subject, False),
        ]

        first_candidate: Optional[str] = None
        judge_failed = False

        for query, qualified in queries:
            try:
                candidates = await self._candidates(query)
            except UpstreamError as e:
                logger.warning(f"Image search rejected '{query}', using placeholder: {e.message}")
                return self.fallback_url
            if not candidates:
                continue
            if first_candidate is None:
                first_candidate = candidates[0]

            try:
                approved = await self._approved(candidates, subject)
            except JudgeUnavailableError as e:
                logger.info(f"Judge unavailable for image of '{subject}': {e.message}")
                judge_failed = True
                continue

            named = [url for url in approved if filename_matches_subject(url, subject)]
            if named:
                return self.rng.choice(named)
            if qualified and approved:
                return self.rng.choice(approved)

        if judge_failed and first_candidate:
            logger.debug(f"Using first raw candidate for '{subject}'")
            return first_candidate

        logger.info(f"No acceptable image for '{subject}', using placeholder")
        return self.fallback_url

    async def _candidates(self, query: str) -> List[str]:
        """
        Valid image URLs for a query; exhausted transient failures yield no candidates.

        Raises:
            UpstreamError: If the search was rejected with a non-retryable status
        """
        try:
            urls = await self.search.search_images(query)
        except UpstreamError as e:
            if not ErrorRecovery.is_retryable_error(e):
                raise
            logger.warning(f"Image search failed for '{query}': {e.message}")
            return []
        return [url for url in urls if is_valid_image_url(url)]

    async def _check_relevance(self, url: str, subject: str) -> bool:
        if self._judge_slots is None:
            self._judge_slots = asyncio.Semaphore(self.judge_concurrency)
        async with self._judge_slots:
            return await self.judge.is_relevant_image(filename_of(url), subject)

    async def _approved(self, candidates: List[str], subject: str) -> List[str]:
        """
        Ask the judge about every candidate, at most `judge_concurrency` at a time.

        Raises:
            JudgeUnavailableError: If there is no judge or every call failed
        """
        if self.judge is None:
            raise JudgeUnavailableError("no judge configured")

        verdicts = await asyncio.gather(
            *(self._check_relevance(url, subject) for url in candidates),
            return_exceptions=True,
        )

        failures = [v for v in verdicts if isinstance(v, Exception)]
        if len(failures) == len(verdicts):
            raise JudgeUnavailableError("every relevance check failed", failures[0])
        for failure in failures:
            logger.debug(f"Relevance check failed: {failure}")

        return [url for url, verdict in zip(candidates, verdicts) if verdict is True]
