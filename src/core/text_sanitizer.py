#!/usr/bin/env python3
"""
Text sanitization utilities for generated news content.

Handles common artifacts in LLM output that leak into headlines: inline
citation markers, markdown emphasis, smart quotes and stray whitespace.
"""

import re
import logging

logger = logging.getLogger(__name__)

# Typographic quotation marks that break JSON parsing and string matching
SMART_QUOTES_MAP = {
    "“": '"',  # Left double quotation mark
    "”": '"',  # Right double quotation mark
    "‘": "'",  # Left single quotation mark
    "’": "'",  # Right single quotation mark
}

SMART_QUOTES_TRANSLATION = str.maketrans(SMART_QUOTES_MAP)

_MULTI_NAME_SPLIT = re.compile(r'\s+(?:and|&)\s+', re.IGNORECASE)
_WHITESPACE = re.compile(r'\s+')


def normalize_quotes(text: str) -> str:
    """
    Normalize typographic quotation marks to ASCII equivalents.

    Args:
        text: Input text that may contain smart quotes

    Returns:
        Text with normalized ASCII quotes
    """
    if not text:
        return text

    return text.translate(SMART_QUOTES_TRANSLATION)


def strip_citations(text: str) -> str:
    """
    Truncate text at the first literal '[' character.

    Grounded generation appends citation markers like "[1]" or "[cite: 3]";
    everything from the first bracket on is dropped.
    """
    if not text:
        return text

    idx = text.find('[')
    if idx != -1:
        text = text[:idx]
    return text.strip()


def strip_markdown(text: str) -> str:
    """Remove markdown emphasis markers and collapse whitespace."""
    if not text:
        return text

    cleaned = text.replace('**', '').replace('__', '')
    return _WHITESPACE.sub(' ', cleaned).strip()


def normalize_subject_name(name: str) -> str:
    """
    Keep only the first-listed person of a joint subject.

    "Ranveer Singh and Deepika Padukone" -> "Ranveer Singh"
    """
    if not name:
        return ''

    return _MULTI_NAME_SPLIT.split(name.strip(), maxsplit=1)[0].strip()


def truncate_words(text: str, max_words: int, ellipsis: str = '...') -> str:
    """
    Truncate text to a word limit, appending an ellipsis when words were cut.

    Args:
        text: Text to shorten
        max_words: Maximum number of words to keep
        ellipsis: Suffix appended only when truncation happened

    Returns:
        The shortened text
    """
    words = (text or '').split()
    if len(words) <= max_words:
        return ' '.join(words)
    return ' '.join(words[:max_words]) + ellipsis


def preprocess_llm_response(raw_response: str) -> str:
    """
    Preprocess LLM response before JSON parsing.

    Args:
        raw_response: Raw response from LLM

    Returns:
        Preprocessed response ready for JSON parsing
    """
    if not raw_response:
        return raw_response

    processed = normalize_quotes(raw_response)

    if processed != raw_response:
        logger.debug(
            "Normalized quotes in LLM response (length %d -> %d)",
            len(raw_response),
            len(processed),
        )

    return processed
