#!/usr/bin/env python3
"""
Database package for the news pipeline.

Provides the Supabase-backed store and storage error classification.
"""

from .news_store import NewsStore, SUBSCRIPTIONS_TABLE
from .errors import missing_columns, columns_to_strip, is_unique_violation

__all__ = [
    'NewsStore',
    'SUBSCRIPTIONS_TABLE',
    'missing_columns',
    'columns_to_strip',
    'is_unique_violation',
]
