#!/usr/bin/env python3
"""
Generated news text parser.

Turns loosely formatted "Name - Description" lines returned by the generation
API into NewsRecord drafts. The parse is lossy and best-effort: lines without
a recognizable separator are dropped silently.
"""

import re
import logging
from typing import List, Optional, Tuple

from core.models.news import Category, NewsRecord
from core.prompts import BODY_SEPARATOR
from core.text_sanitizer import normalize_quotes, strip_citations, strip_markdown, truncate_words

logger = logging.getLogger(__name__)

MAX_ITEMS = 15
MIN_HEADLINE_WORDS = 6
SYNTHETIC_HEADLINE_WORDS = 10

# "1." / "2)" ordinals and "*", "-", "•" bullets at the start of a line
_LINE_PREFIX = re.compile(r'^\s*(?:[*•\-]\s+)?(?:\d+\s*[.)]\s*)?(?:[*•]\s+)?')

# Whitespace around the separator keeps hyphenated names intact ("Jean-Claude")
_STRICT_SEPARATOR = re.compile(r'^(?P<name>.+?)(?:\s+[-–—|]\s+|\s*:\s+)(?P<desc>.+)$')
_LENIENT_SEPARATOR = re.compile(r'^(?P<name>.+?)\s*[-–—:|]\s*(?P<desc>.+)$')


def _split_line(line: str) -> Optional[Tuple[str, str]]:
    """Split a cleaned line into (name, description), or None if no separator."""
    match = _STRICT_SEPARATOR.match(line) or _LENIENT_SEPARATOR.match(line)
    if not match:
        return None
    return match.group('name'), match.group('desc')


def _split_body(description: str) -> Tuple[str, Optional[str]]:
    """
    Split a description on the in-band body separator.

    Returns:
        (headline, body) where body is None when no separator is present
    """
    if BODY_SEPARATOR not in description:
        return strip_citations(description), None

    head, _, tail = description.partition(BODY_SEPARATOR)
    headline = strip_citations(head)
    body = strip_citations(tail) or None

    if body and len(headline.split()) < MIN_HEADLINE_WORDS:
        headline = truncate_words(body, SYNTHETIC_HEADLINE_WORDS)
    return headline, body


def parse_line(line: str, category: Category) -> Optional[NewsRecord]:
    """
    Parse a single generated line.

    Args:
        line: Raw line of generated text
        category: Category the line was generated for

    Returns:
        A NewsRecord draft, or None if the line is not usable
    """
    cleaned = strip_markdown(normalize_quotes(line or ''))
    cleaned = _LINE_PREFIX.sub('', cleaned, count=1).strip()
    if not cleaned:
        return None

    parts = _split_line(cleaned)
    if parts is None:
        return None

    name, description = parts
    name = name.strip(' *•"\'[]')
    headline, body = _split_body(description.strip())

    if not name or not headline:
        return None

    return NewsRecord(category=category, subject_name=name, headline=headline, body=body)


def parse_news_text(text: str, category: Category, max_items: int = MAX_ITEMS) -> List[NewsRecord]:
    """
    Parse generated text into at most `max_items` NewsRecord drafts.

    Args:
        text: Raw generated text, one item per line
        category: Category the text was generated for
        max_items: Upper bound on returned drafts

    Returns:
        Drafts in input order; an empty list when nothing usable was found
    """
    if not text:
        return []

    drafts: List[NewsRecord] = []
    skipped = 0

    for line in text.splitlines():
        if len(drafts) >= max_items:
            break
        if not line.strip():
            continue

        draft = parse_line(line, category)
        if draft is None:
            skipped += 1
            continue
        drafts.append(draft)

    if skipped:
        logger.debug(f"Skipped {skipped} unusable lines for {category.value}")
    logger.info(f"Parsed {len(drafts)} news items for {category.value}")
    return drafts
