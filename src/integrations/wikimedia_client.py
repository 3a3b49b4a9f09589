#!/usr/bin/env python3
"""
Wikimedia Commons image search client.

Searches the File namespace and returns image URLs, preferring the 800px
thumbnail over the original upload.
"""

import logging
from typing import List, Optional

import aiohttp

from integrations.http_retry import request_with_retry

logger = logging.getLogger(__name__)

COMMONS_API_URL = "https://commons.wikimedia.org/w/api.php"


class WikimediaClient:
    """Thin async client for the Commons search API."""

    def __init__(self, session: aiohttp.ClientSession, timeout: float = 10.0,
                 max_attempts: int = 5, base_delay: float = 0.5,
                 result_limit: int = 15, thumb_width: int = 800):
        self.session = session
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.result_limit = result_limit
        self.thumb_width = thumb_width

    async def search_images(self, query: str) -> List[str]:
        """
        Search Commons files for a query.

        Args:
            query: Free-text search string

        Returns:
            Image URLs in search rank order (unfiltered)

        Raises:
            UpstreamError: When the search fails after retries
        """
        params = {
            'action': 'query',
            'generator': 'search',
            'gsrsearch': query,
            'gsrnamespace': '6',
            'gsrlimit': str(self.result_limit),
            'prop': 'imageinfo',
            'iiprop': 'url',
            'iiurlwidth': str(self.thumb_width),
            'format': 'json',
            'origin': '*',
        }

        data = await request_with_retry(
            self.session, 'GET', COMMONS_API_URL, 'wikimedia',
            params=params,
            timeout=self.timeout,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
        )

        pages = ((data or {}).get('query') or {}).get('pages') or {}
        if not pages:
            logger.debug(f"Wikimedia returned no pages for '{query}'")
            return []

        ordered = sorted(pages.values(), key=lambda page: page.get('index', 0))
        urls = []
        for page in ordered:
            url = self._image_url(page)
            if url:
                urls.append(url)
        return urls

    @staticmethod
    def _image_url(page: dict) -> Optional[str]:
        infos = page.get('imageinfo') or []
        if not infos:
            return None
        info = infos[0]
        return info.get('thumburl') or info.get('url')
