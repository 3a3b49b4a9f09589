#!/usr/bin/env python3
"""
Judge-based duplicate cleanup.

Sends the most recent records of a category to the judge, reads back
{keep_id, delete_id, reason} verdicts and deletes one member of each pair.
This is probabilistic cleanup: missed duplicates and wrong deletions are
accepted risks of relying on a language model.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from core.exceptions import NewsPipelineError, StorageError
from core.json_validator import extract_items
from core.models.news import Category, NewsRecord
from core.models.results import DedupResult, DuplicatePair

logger = logging.getLogger(__name__)

DELETE_KEYS = ('delete_id', 'deleteId', 'deleteid')
KEEP_KEYS = ('keep_id', 'keepId', 'keepid')


def _first_present(item: Dict[str, Any], keys: Iterable[str]) -> Optional[str]:
    for key in keys:
        value = item.get(key)
        if value not in (None, ''):
            return str(value)
    return None


def to_duplicate_pair(item: Dict[str, Any]) -> Optional[DuplicatePair]:
    """
    Normalise one verdict object.

    Returns:
        DuplicatePair, or None when there is no delete id
    """
    delete_id = _first_present(item, DELETE_KEYS)
    if not delete_id:
        return None
    reason = item.get('reason')
    return DuplicatePair(
        delete_id=delete_id,
        keep_id=_first_present(item, KEEP_KEYS),
        reason=str(reason) if reason else None,
    )


def build_payload(records: List[NewsRecord]) -> List[Dict[str, Any]]:
    """Compact {id, title, body} items; title is the subject and body the headline."""
    return [
        {'id': record.id, 'title': record.subject_name, 'body': record.headline}
        for record in records
    ]


class DuplicateCleaner:
    """Deletes judge-identified duplicates from the recent records of each category."""

    def __init__(self, store, judge, batch_size: int = 20):
        """
        Args:
            store: NewsStore (or compatible) handle
            judge: SemanticJudge providing find_duplicates
            batch_size: Number of most recent records sent to the judge
        """
        self.store = store
        self.judge = judge
        self.batch_size = batch_size

    async def clean_category(self, category: Category) -> DedupResult:
        """
        Run one duplicate sweep over a category.

        Storage read failures propagate; judge failures and per-pair deletion
        failures are recorded in the result.
        """
        result = DedupResult(category=category.value)

        records = await self.store.latest(category, self.batch_size)
        result.checked = len(records)
        if not records:
            logger.info(f"No rows in {category.table_name}, skipping duplicate check")
            return result

        try:
            raw = await self.judge.find_duplicates(build_payload(records))
        except NewsPipelineError as e:
            logger.error(f"Duplicate check for {category.value} could not run: {e.message}")
            result.errors.append(e.message)
            return result

        pairs = [pair for pair in map(to_duplicate_pair, extract_items(raw)) if pair is not None]
        result.pairs = len(pairs)
        batch_ids = {record.id for record in records}

        for pair in pairs:
            if pair.delete_id in result.deleted:
                continue
            if pair.delete_id == pair.keep_id:
                logger.debug(f"Ignoring self-referencing pair for {pair.delete_id}")
                continue
            if pair.delete_id not in batch_ids:
                logger.warning(f"Judge returned unknown id {pair.delete_id} for {category.value}, skipping")
                continue

            try:
                await self.store.delete_by_id(category, pair.delete_id)
            except StorageError as e:
                logger.error(f"Failed to delete duplicate {pair.delete_id} from {category.table_name}: {e.message}")
                result.errors.append(f"{pair.delete_id}: {e.message}")
                continue

            result.deleted.append(pair.delete_id)
            logger.info(
                f"Deleted duplicate {pair.delete_id} from {category.table_name} "
                f"(kept {pair.keep_id or 'unknown'}): {(pair.reason or '')[:200]}"
            )

        return result

    async def clean_all(self, categories: Optional[List[Category]] = None) -> List[DedupResult]:
        """Sweep categories one after another; a failing category does not stop the rest."""
        results = []
        for category in categories or list(Category):
            try:
                results.append(await self.clean_category(category))
            except NewsPipelineError as e:
                logger.error(f"Duplicate sweep failed for {category.value}: {e.message}")
                results.append(DedupResult(category=category.value, errors=[e.message]))
        return results
