#!/usr/bin/env python3
"""
Video matching for news items.

A video URL is attached only when the text contains a video-related keyword
AND the judge confirms the top search result describes the same event.
"""

import re
import logging
from typing import Optional, Protocol

from core.exceptions import NewsPipelineError

logger = logging.getLogger(__name__)

VIDEO_KEYWORDS = frozenset({
    'video', 'clip', 'shared', 'caught', 'reel', 'reels', 'tiktok', 'instagram',
    'youtube', 'trailer', 'teaser', 'viral', 'footage', 'watch', 'announced',
    'revealed', 'performs', 'performance', 'dance', 'song', 'interview',
})

_KEYWORD_PATTERN = re.compile(
    r'\b(?:' + '|'.join(sorted(VIDEO_KEYWORDS, key=len, reverse=True)) + r')\b',
    re.IGNORECASE,
)


class VideoSearch(Protocol):
    async def search_first(self, query: str):
        ...


def has_video_keyword(text: Optional[str]) -> bool:
    """True when the text contains a video keyword as a whole word."""
    return bool(text) and _KEYWORD_PATTERN.search(text) is not None


class VideoMatcher:
    """Two-stage gate: keyword heuristic, then search plus judge confirmation."""

    def __init__(self, search: VideoSearch, judge=None):
        self.search = search
        self.judge = judge

    async def match(self, search_query: str, body: Optional[str] = None) -> Optional[str]:
        """
        Find a confirmed video for a news item.

        Args:
            search_query: "subject headline" string used for the search
            body: Optional long-form text also scanned for keywords

        Returns:
            A watch URL, or None when any stage declines or fails
        """
        text = f"{search_query} {body}" if body else search_query
        if not has_video_keyword(text):
            return None

        if self.judge is None:
            logger.debug("No judge configured; skipping video match")
            return None

        try:
            result = await self.search.search_first(search_query)
        except NewsPipelineError as e:
            logger.warning(f"Video search failed for '{search_query[:80]}': {e.message}")
            return None

        if result is None:
            return None

        try:
            confirmed = await self.judge.is_same_event(search_query, result.title)
        except NewsPipelineError as e:
            logger.warning(f"Video confirmation failed for '{search_query[:80]}': {e.message}")
            return None

        if not confirmed:
            logger.debug(f"Judge rejected video '{result.title[:80]}' for '{search_query[:80]}'")
            return None

        logger.info(f"Attached video {result.video_id} to '{search_query[:80]}'")
        return result.watch_url
