#!/usr/bin/env python3
"""
Deduplication package.

Removes near-duplicate news items using a semantic judge.
"""

from .cleaner import DuplicateCleaner, to_duplicate_pair, build_payload

__all__ = [
    'DuplicateCleaner',
    'to_duplicate_pair',
    'build_payload',
]
