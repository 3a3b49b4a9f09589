#!/usr/bin/env python3
"""
Classification of storage errors by code and message pattern.

PostgREST and Postgres report the same failure classes in different words;
these helpers recognise both forms.
"""

import re
from typing import List, Optional, Sequence

# Postgres: column "youtube_url" of relation "tv_news" does not exist
_PG_MISSING_COLUMN = re.compile(r'column\s+"?(?:\w+\.)?(\w+)"?[^\n]*?does not exist', re.IGNORECASE)
# PostgREST: Could not find the 'youtube_url' column of 'tv_news' in the schema cache
_PGRST_MISSING_COLUMN = re.compile(r"could not find the '(\w+)' column", re.IGNORECASE)

SCHEMA_MISMATCH_CODES = frozenset({'PGRST204', '42703'})
UNIQUE_VIOLATION_CODE = '23505'


def _error_text(error: Exception) -> str:
    backend_message = getattr(error, 'backend_message', None) or getattr(error, 'message', None)
    text = str(error)
    if backend_message and backend_message not in text:
        text = f"{backend_message} {text}"
    return text


def missing_columns(error: Exception) -> Optional[List[str]]:
    """
    Detect a missing-column insert failure.

    Args:
        error: Exception raised by a storage write

    Returns:
        None when the error is not a schema mismatch; otherwise the column
        names the backend reported (empty when none could be read)
    """
    text = _error_text(error)
    named = _PG_MISSING_COLUMN.findall(text) + _PGRST_MISSING_COLUMN.findall(text)
    code = str(getattr(error, 'code', '') or '')

    if named:
        # Preserve order, drop repeats
        return list(dict.fromkeys(named))
    if code in SCHEMA_MISMATCH_CODES:
        return []
    return None


def columns_to_strip(error: Exception, optional_columns: Sequence[str]) -> Optional[List[str]]:
    """
    Decide which optional columns to drop before retrying a failed insert.

    Returns:
        None when the error is not a schema mismatch; otherwise the optional
        columns the error names, or every optional column if it names none
    """
    named = missing_columns(error)
    if named is None:
        return None

    text = _error_text(error)
    matched = [
        column for column in optional_columns
        if column in named or re.search(rf'\b{re.escape(column)}\b', text)
    ]
    return matched or list(optional_columns)


def is_unique_violation(error: Exception) -> bool:
    """Unique-constraint violations are reported as code 23505 or 'duplicate key'."""
    code = str(getattr(error, 'code', '') or '')
    if code == UNIQUE_VIOLATION_CODE:
        return True
    return 'duplicate key' in _error_text(error).lower()
