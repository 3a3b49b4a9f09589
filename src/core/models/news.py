#!/usr/bin/env python3
"""
News data models.

Represents generated celebrity news items and the closed set of categories
that partition them.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

from dateutil import parser as date_parser


class Category(str, Enum):
    """News verticals. Each one is backed by its own `<category>_news` table."""
    BOLLYWOOD = 'bollywood'
    TV = 'tv'
    HOLLYWOOD = 'hollywood'

    @property
    def table_name(self) -> str:
        return f"{self.value}_news"

    @property
    def search_hint(self) -> str:
        """Qualifier appended to image searches for this vertical."""
        return CATEGORY_SEARCH_HINTS[self]

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]

    @classmethod
    def parse(cls, value: str) -> 'Category':
        """Parse a category name or table name; raises ValueError when unknown."""
        normalized = (value or '').strip().lower()
        if normalized.endswith('_news'):
            normalized = normalized[:-len('_news')]
        for category in cls:
            if category.value == normalized:
                return category
        allowed = ', '.join(c.value for c in cls)
        raise ValueError(f"Invalid category '{value}'. Must be one of: {allowed}")


CATEGORY_SEARCH_HINTS = {
    Category.BOLLYWOOD: 'Bollywood actor',
    Category.TV: 'Indian television actor',
    Category.HOLLYWOOD: 'Hollywood',
}

CATEGORY_LABELS = {
    Category.BOLLYWOOD: '🎬 Bollywood',
    Category.TV: '📺 TV',
    Category.HOLLYWOOD: '🌟 Hollywood',
}

# Columns added after the first deployments; inserts may need to drop them
OPTIONAL_COLUMNS = ('youtube_url', 'news_body')


def _parse_datetime_safe(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError):
        return None


@dataclass
class NewsRecord:
    """
    A single reported item for a category.

    Drafts produced by the parser have no id, image or timestamp yet; those are
    attached by enrichment and persistence.
    """
    category: Category
    subject_name: str
    headline: str
    body: Optional[str] = None
    image_url: str = ""
    video_url: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.subject_name = self.subject_name.strip()
        self.headline = self.headline.strip()
        if self.body is not None:
            self.body = self.body.strip() or None

    @property
    def search_query(self) -> str:
        return f"{self.subject_name} {self.headline}"

    @property
    def body_word_count(self) -> int:
        return len(self.body.split()) if self.body else 0

    def to_row(self) -> Dict[str, Any]:
        """Convert to a table row. Optional columns are left out when empty."""
        row = {
            'person_name': self.subject_name,
            'news_text': self.headline,
            'image_url': self.image_url,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'search_query': self.search_query,
        }
        if self.video_url:
            row['youtube_url'] = self.video_url
        if self.body:
            row['news_body'] = self.body
        return row

    def to_dict(self) -> Dict[str, Any]:
        """Row form plus id, used by API responses."""
        data = {'id': self.id}
        data.update(self.to_row())
        data.setdefault('youtube_url', None)
        data.setdefault('news_body', None)
        return data

    @classmethod
    def from_row(cls, category: Category, row: Dict[str, Any]) -> 'NewsRecord':
        """Create a record from a table row; tolerates missing optional columns."""
        record_id = row.get('id')
        return cls(
            category=category,
            subject_name=row.get('person_name') or '',
            headline=row.get('news_text') or '',
            body=row.get('news_body'),
            image_url=row.get('image_url') or '',
            video_url=row.get('youtube_url'),
            created_at=_parse_datetime_safe(row.get('created_at')),
            id=str(record_id) if record_id is not None else None,
        )

    def __repr__(self):
        return f"NewsRecord(category='{self.category.value}', subject='{self.subject_name}', headline='{self.headline[:40]}...')"


@dataclass
class PushSubscription:
    """A browser push subscription, keyed by endpoint URL."""
    endpoint: str
    keys: Dict[str, str] = field(default_factory=dict)
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    def to_row(self) -> Dict[str, Any]:
        return {
            'endpoint': self.endpoint,
            'keys': self.keys or None,
            'user_agent': self.user_agent,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def to_subscription_info(self) -> Dict[str, Any]:
        """Shape expected by the web-push library."""
        return {'endpoint': self.endpoint, 'keys': self.keys or {}}

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'PushSubscription':
        record_id = row.get('id')
        return cls(
            endpoint=row.get('endpoint') or '',
            keys=row.get('keys') or {},
            user_agent=row.get('user_agent'),
            created_at=_parse_datetime_safe(row.get('created_at')),
            id=str(record_id) if record_id is not None else None,
        )
