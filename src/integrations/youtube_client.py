#!/usr/bin/env python3
"""
YouTube Data API search client.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp

from core.exceptions import ConfigurationError
from integrations.http_retry import request_with_retry

logger = logging.getLogger(__name__)

YOUTUBE_SEARCH_URL = "https://www.googleapis.com/youtube/v3/search"
WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"


@dataclass
class VideoResult:
    """Top search hit."""
    video_id: str
    title: str = ""

    @property
    def watch_url(self) -> str:
        return WATCH_URL_TEMPLATE.format(video_id=self.video_id)


class YouTubeClient:
    """Async client returning only the first search result."""

    def __init__(self, session: aiohttp.ClientSession, api_key: Optional[str],
                 timeout: float = 6.0, max_attempts: int = 1, base_delay: float = 0.5):
        self.session = session
        self.api_key = api_key
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    async def search_first(self, query: str) -> Optional[VideoResult]:
        """
        Return the top result for a query.

        Args:
            query: Free-text search string

        Returns:
            VideoResult, or None when the search has no video hit

        Raises:
            ConfigurationError: If no API key is configured
            UpstreamError: If the search request fails
        """
        if not self.api_key:
            raise ConfigurationError("YOUTUBE_API_KEY")

        params = {
            'part': 'snippet',
            'type': 'all',
            'maxResults': '1',
            'q': query,
            'key': self.api_key,
        }
        data = await request_with_retry(
            self.session, 'GET', YOUTUBE_SEARCH_URL, 'youtube',
            params=params,
            timeout=self.timeout,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
        )

        items = (data or {}).get('items') or []
        if not items:
            return None

        first = items[0]
        video_id = (first.get('id') or {}).get('videoId')
        if not video_id:
            logger.debug(f"Top YouTube result for '{query}' is not a video")
            return None

        title = (first.get('snippet') or {}).get('title') or ''
        return VideoResult(video_id=video_id, title=title)
