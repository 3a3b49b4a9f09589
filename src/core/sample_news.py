#!/usr/bin/env python3
"""
Built-in sample content.

Served by the read path when the store is unconfigured, failing or empty,
so the front-end never shows a hard error.
"""

from datetime import datetime, timezone
from typing import List

from core.models.news import Category, NewsRecord

_PEXELS = "https://images.pexels.com/photos/{photo}/pexels-photo-{photo}.jpeg?auto=compress&cs=tinysrgb&w=800"

SAMPLE_ITEMS = {
    Category.BOLLYWOOD: [
        ('1', 'Shah Rukh Khan',
         'Shah Rukh Khan announces new project with acclaimed director, set to begin filming next month', 220453),
        ('2', 'Deepika Padukone',
         'Deepika Padukone wins Best Actress award at international film festival', 733872),
        ('3', 'Ranveer Singh',
         'Ranveer Singh collaborates with global brand for exclusive fashion line', 1516680),
    ],
    Category.TV: [
        ('4', 'Hina Khan',
         'Popular TV actress signs for new daily soap drama premiering next season', 1181686),
        ('5', 'Karan Johar',
         'Reality show host reveals behind-the-scenes secrets in candid interview', 1222271),
        ('6', 'Rupali Ganguly',
         'Lead actor from hit series discusses upcoming season finale surprises', 1239291),
    ],
    Category.HOLLYWOOD: [
        ('7', 'Leonardo DiCaprio',
         'Oscar winner announces retirement from acting to focus on directing', 1438081),
        ('8', 'Emma Stone',
         'A-list actress launches production company focused on diverse storytelling', 1065084),
        ('9', 'Taylor Swift',
         'Pop superstar drops surprise album with star-studded collaborations', 1587009),
    ],
}


def get_sample_news(category: Category) -> List[NewsRecord]:
    """Sample records for a category, stamped with the current time."""
    now = datetime.now(timezone.utc)
    return [
        NewsRecord(
            category=category,
            subject_name=name,
            headline=headline,
            image_url=_PEXELS.format(photo=photo),
            created_at=now,
            id=record_id,
        )
        for record_id, name, headline, photo in SAMPLE_ITEMS.get(category, [])
    ]
