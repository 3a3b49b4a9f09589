#!/usr/bin/env python3
"""
Core data models for the news pipeline.

Contains all data structures used throughout the application.
"""

from .news import Category, NewsRecord, PushSubscription, OPTIONAL_COLUMNS
from .events import TextEvent, DoneEvent, ErrorEvent, StreamEvent, to_sse
from .results import CategoryResult, RefreshSummary, DuplicatePair, DedupResult

__all__ = [
    'Category', 'NewsRecord', 'PushSubscription', 'OPTIONAL_COLUMNS',
    'TextEvent', 'DoneEvent', 'ErrorEvent', 'StreamEvent', 'to_sse',
    'CategoryResult', 'RefreshSummary', 'DuplicatePair', 'DedupResult',
]
