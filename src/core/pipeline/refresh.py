#!/usr/bin/env python3
"""
News refresh orchestration.

One refresh cycle per category: generate -> parse -> enrich -> evict ->
persist. All categories run concurrently and their outcomes are collected
with settle-all semantics, so one failing category never blocks the others.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol

from core.config import PipelineConfig
from core.database.errors import columns_to_strip, is_unique_violation
from core.exceptions import NewsPipelineError, StorageError
from core.models.news import Category, NewsRecord, OPTIONAL_COLUMNS
from core.models.results import CategoryResult, RefreshSummary
from core.news_parser import parse_news_text
from core.prompts import PROMPT_VERSION_LONG_FORM, PROMPT_VERSION_PLAIN, get_category_prompt

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    async def generate(self, prompt: str, category: str) -> str:
        ...


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def uniform_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Give every row the same keys so a bulk insert sees one column set."""
    keys: List[str] = []
    for row in rows:
        for key in row:
            if key not in keys:
                keys.append(key)
    return [{key: row.get(key) for key in keys} for row in rows]


class RefreshOrchestrator:
    """Drives refresh cycles for the news categories."""

    def __init__(self, store, generator: TextGenerator, image_resolver,
                 video_matcher=None, settings: Optional[PipelineConfig] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            store: NewsStore (or compatible) handle
            generator: Text generator (e.g. GeminiClient)
            image_resolver: ImageResolver for subject images
            video_matcher: VideoMatcher; None disables video matching
            settings: Pipeline settings (retention, feature flags, limits)
            clock: Source of the batch timestamp
        """
        self.store = store
        self.generator = generator
        self.image_resolver = image_resolver
        self.video_matcher = video_matcher
        self.settings = settings or PipelineConfig()
        self.clock = clock or _utc_now
        self._last_batch_time: Optional[datetime] = None

    @property
    def prompt_version(self) -> str:
        return PROMPT_VERSION_LONG_FORM if self.settings.long_form_body else PROMPT_VERSION_PLAIN

    def _batch_time(self) -> datetime:
        """Timestamp shared by a whole batch; strictly later than the previous batch."""
        now = self.clock()
        if self._last_batch_time is not None and now <= self._last_batch_time:
            now = self._last_batch_time + timedelta(microseconds=1)
        self._last_batch_time = now
        return now

    async def refresh_all(self, categories: Optional[List[Category]] = None) -> RefreshSummary:
        """
        Refresh every category concurrently.

        Returns:
            Summary with one result per category, in category order
        """
        categories = categories or list(Category)
        logger.info(f"Starting refresh for {len(categories)} categories")

        outcomes = await asyncio.gather(
            *(self.refresh_category(category) for category in categories),
            return_exceptions=True,
        )

        results = []
        for category, outcome in zip(categories, outcomes):
            if isinstance(outcome, BaseException):
                message = getattr(outcome, 'message', None) or str(outcome) or 'Unknown error'
                logger.error(f"Refresh failed for {category.value}: {message}")
                results.append(CategoryResult(category=category.value, success=False, error=message))
            else:
                results.append(CategoryResult(category=category.value, success=True, count=outcome))

        summary = RefreshSummary(results=results)
        succeeded = sum(1 for result in results if result.success)
        logger.info(f"Refresh completed: {succeeded}/{len(results)} categories succeeded")
        return summary

    async def refresh_category(self, category: Category) -> int:
        """
        Run one refresh cycle.

        Returns:
            Number of records generated for the category

        Raises:
            ConfigurationError: If generation is not configured
            GenerationError: If generation failed after all attempts
            StorageError: If the insert failed for a reason other than
                a benign duplicate or a recoverable schema mismatch
        """
        logger.info(f"Fetching news for {category.value}...")

        prompt = get_category_prompt(
            category, self.prompt_version, count=self.settings.max_items_per_category
        )
        text = await self.generator.generate(prompt, category.value)

        drafts = parse_news_text(text, category, max_items=self.settings.max_items_per_category)
        if not drafts:
            logger.warning(f"No usable news lines generated for {category.value}")

        batch_time = self._batch_time()
        await asyncio.gather(*(self._enrich(draft, batch_time) for draft in drafts))

        await self._evict(category, batch_time)

        if drafts:
            await self._persist(category, drafts)

        logger.info(f"Successfully updated {category.value} news ({len(drafts)} items)")
        return len(drafts)

    async def _enrich(self, draft: NewsRecord, batch_time: datetime) -> None:
        draft.created_at = batch_time
        image_url, video_url = await asyncio.gather(
            self.image_resolver.resolve(draft.subject_name, draft.category),
            self._match_video(draft),
        )
        draft.image_url = image_url
        draft.video_url = video_url

    async def _match_video(self, draft: NewsRecord) -> Optional[str]:
        if not self.settings.attach_video or self.video_matcher is None:
            return None
        return await self.video_matcher.match(draft.search_query, draft.body)

    async def _evict(self, category: Category, batch_time: datetime) -> None:
        """Delete records older than the retention window; failures are only logged."""
        hours = self.settings.retention_for(category)
        cutoff = batch_time - timedelta(hours=hours)
        try:
            deleted = await self.store.delete_older_than(category, cutoff)
            logger.info(f"Evicted {deleted} {category.value} records older than {hours}h")
        except NewsPipelineError as e:
            logger.error(f"Error clearing old news for {category.value}: {e.message}")

    async def _persist(self, category: Category, drafts: List[NewsRecord]) -> None:
        """
        Insert the batch, stripping optional columns the schema lacks.

        Unique-constraint violations are benign and end the attempt quietly.
        """
        rows = uniform_rows([draft.to_row() for draft in drafts])
        stripped: List[str] = []

        while True:
            try:
                inserted = await self.store.insert_rows(category, rows)
                logger.debug(f"Stored {inserted} {category.value} records")
                return
            except StorageError as e:
                if is_unique_violation(e):
                    logger.info(f"Duplicate records for {category.value} already stored, skipping")
                    return

                columns = columns_to_strip(e, OPTIONAL_COLUMNS)
                remaining = [column for column in (columns or []) if column not in stripped]
                if not remaining:
                    logger.error(f"Error inserting news for {category.value}: {e.message}")
                    raise

                stripped.extend(remaining)
                logger.warning(
                    f"Schema for {category.table_name} lacks {', '.join(remaining)}; retrying insert without them"
                )
                rows = [
                    {key: value for key, value in row.items() if key not in stripped}
                    for row in rows
                ]
