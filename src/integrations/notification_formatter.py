#!/usr/bin/env python3
"""
Notification formatting for the daily push newsletter.

Builds one multi-category web-push payload from the latest item of each
category.
"""

from typing import Dict, Any, Optional

from core.models.news import Category, NewsRecord


class NotificationFormatter:
    """Formats news content for web-push notifications."""

    TITLE = "• It's Paparazzi time 😊 •"
    FALLBACK_BODY = "Your daily entertainment highlights are here!"
    ICON_URL = "https://cdn.jsdelivr.net/gh/twitter/twemoji@14.0.2/assets/svg/1f4f0.svg"
    TAG = "paparazzi-daily"

    # Order of blocks in the notification body
    BODY_ORDER = (Category.BOLLYWOOD, Category.HOLLYWOOD, Category.TV)
    # Order in which categories donate the notification image
    IMAGE_ORDER = (Category.BOLLYWOOD, Category.TV, Category.HOLLYWOOD)

    def __init__(self, open_url: str = "/"):
        self.open_url = open_url

    @staticmethod
    def format_block(category: Category, record: NewsRecord) -> str:
        return f"{category.label}\n• {record.subject_name} — {record.headline}"

    def format_push_payload(self, top_stories: Dict[Category, Optional[NewsRecord]]) -> Dict[str, Any]:
        """
        Compose the push payload.

        Args:
            top_stories: Latest record per category (None when a category has none)

        Returns:
            JSON-serialisable payload understood by the service worker
        """
        blocks = [
            self.format_block(category, top_stories[category])
            for category in self.BODY_ORDER
            if top_stories.get(category) is not None
        ]

        image = None
        for category in self.IMAGE_ORDER:
            record = top_stories.get(category)
            if record is not None and record.image_url:
                image = record.image_url
                break

        payload = {
            "title": self.TITLE,
            "body": "\n\n".join(blocks) or self.FALLBACK_BODY,
            "url": self.open_url,
            "icon": self.ICON_URL,
            "tag": self.TAG,
            "actions": [{"action": "open", "title": "Open App"}],
        }
        if image:
            payload["image"] = image
        return payload
