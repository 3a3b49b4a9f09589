#!/usr/bin/env python3
"""
Run result models for refresh and cleanup jobs.
"""

from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field


@dataclass
class CategoryResult:
    """Outcome of one category's refresh cycle."""
    category: str
    success: bool
    count: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if self.success:
            return {'category': self.category, 'success': True, 'count': self.count}
        return {'category': self.category, 'success': False, 'error': self.error or 'Unknown error'}


@dataclass
class RefreshSummary:
    """Aggregate of all category outcomes for one scheduler invocation."""
    results: List[CategoryResult]
    message: str = "News update completed"
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def all_succeeded(self) -> bool:
        return all(result.success for result in self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'results': [result.to_dict() for result in self.results],
            'timestamp': self.timestamp.isoformat(),
        }


@dataclass
class DuplicatePair:
    """One duplicate verdict from the judge."""
    delete_id: str
    keep_id: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class DedupResult:
    """Outcome of a duplicate sweep over one category."""
    category: str
    checked: int = 0
    pairs: int = 0
    deleted: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'category': self.category,
            'checked': self.checked,
            'pairs': self.pairs,
            'deleted': list(self.deleted),
            'errors': list(self.errors),
        }
