#!/usr/bin/env python3
"""
On-demand long-form content for a news item.

Serves a stored body when one exists and is substantial; otherwise streams
an elaboration from the generation API, forwarding every chunk as soon as it
arrives, and persists the full text in the background once the stream ends.
"""

import asyncio
import logging
from typing import AsyncIterator, List, Optional, Set

from core.exceptions import NewsPipelineError, StorageError
from core.models.events import DoneEvent, ErrorEvent, StreamEvent, TextEvent
from core.models.news import Category, NewsRecord
from core.prompts import get_expansion_prompt

logger = logging.getLogger(__name__)


class ContentExpander:
    """Cache-and-compute-once expansion of news items."""

    def __init__(self, generator, store=None, body_cache_min_words: int = 90):
        """
        Args:
            generator: Streaming text generator (e.g. GeminiClient)
            store: NewsStore used for the cached body and persistence; None disables both
            body_cache_min_words: A stored body must exceed this many words to be reused
        """
        self.generator = generator
        self.store = store
        self.body_cache_min_words = body_cache_min_words
        self._pending_writes: Set[asyncio.Task] = set()

    async def find_record(self, category: Category, subject_name: str, headline: str,
                          record_id: Optional[str] = None) -> Optional[NewsRecord]:
        """Look a record up by id, or by (subject, headline); storage failures yield None."""
        if self.store is None:
            return None
        try:
            if record_id:
                return await self.store.get_by_id(category, record_id)
            return await self.store.find_by_content(category, subject_name, headline)
        except StorageError as e:
            logger.warning(f"Could not look up stored body for '{subject_name}': {e.message}")
            return None

    def has_cached_body(self, record: Optional[NewsRecord]) -> bool:
        return record is not None and record.body_word_count > self.body_cache_min_words

    async def expand(self, category: Category, subject_name: str, headline: str,
                     record_id: Optional[str] = None, force: bool = False) -> AsyncIterator[StreamEvent]:
        """
        Produce the long-form content as a stream of events.

        Args:
            category: Category of the item
            subject_name: Subject of the item
            headline: Headline of the item
            record_id: Stored record id, when known
            force: Regenerate even if a stored body exists

        Yields:
            TextEvent chunks, then exactly one DoneEvent or ErrorEvent
        """
        record = await self.find_record(category, subject_name, headline, record_id)

        if not force and self.has_cached_body(record):
            logger.info(f"Serving stored body for '{subject_name}' ({record.body_word_count} words)")
            yield TextEvent(record.body)
            yield DoneEvent()
            return

        prompt = get_expansion_prompt(category.value, subject_name, headline)
        chunks: List[str] = []

        try:
            async for chunk in self.generator.stream(prompt, category.value):
                chunks.append(chunk)
                yield TextEvent(chunk)
        except NewsPipelineError as e:
            logger.error(f"Content stream failed for '{subject_name}': {e.message}")
            yield ErrorEvent(e.message)
            return
        except Exception as e:
            logger.error(f"Unexpected content stream failure for '{subject_name}': {e}")
            yield ErrorEvent(str(e) or "Unknown error")
            return

        yield DoneEvent()

        content = ''.join(chunks)
        if record is not None and record.id and content.strip():
            self._schedule_write(category, record.id, content)
        elif content.strip():
            logger.debug(f"No stored record for '{subject_name}', expansion not persisted")

    def _schedule_write(self, category: Category, record_id: str, content: str) -> None:
        task = asyncio.ensure_future(self._write_body(category, record_id, content))
        self._pending_writes.add(task)
        task.add_done_callback(self._pending_writes.discard)

    async def _write_body(self, category: Category, record_id: str, content: str) -> None:
        try:
            updated = await self.store.update_body(category, record_id, content)
        except StorageError as e:
            logger.error(f"Failed to persist body for {category.table_name}/{record_id}: {e.message}")
            return
        logger.info(f"Persisted body for {category.table_name}/{record_id} (updated={updated})")

    async def wait_for_pending_writes(self) -> None:
        """Wait until every scheduled body write has finished."""
        if self._pending_writes:
            await asyncio.gather(*list(self._pending_writes), return_exceptions=True)
