#!/usr/bin/env python3
"""
Per-run resource bundle.

A NewsRuntime owns the HTTP session, the store handle and the judge for one
request or one command run, builds the pipeline services on top of them and
releases everything on close.
"""

import logging
from typing import Optional

from core.container import Container, get_container
from core.content import ContentExpander
from core.deduplication import DuplicateCleaner
from core.exceptions import ConfigurationError
from core.pipeline import RefreshOrchestrator

logger = logging.getLogger(__name__)


class NewsRuntime:
    """Explicit resource handle for pipeline work."""

    def __init__(self, container: Optional[Container] = None, with_store: bool = True,
                 prefer_proxy_judge: bool = False):
        self.container = container or get_container()
        self.config = self.container.get('config')
        self.with_store = with_store
        self.prefer_proxy_judge = prefer_proxy_judge
        self.session = None
        self.store = None
        self.judge = None
        self._expanders = []

    async def open(self) -> 'NewsRuntime':
        """
        Acquire the session, the judge and (optionally) the store.

        Raises:
            ConfigurationError: If the store is requested but not configured
        """
        self.session = self.container.get('http_session')
        try:
            if self.with_store:
                self.store = await self.container.get('store')
            self.judge = self.container.get('judge', session=self.session,
                                            prefer_proxy=self.prefer_proxy_judge)
        except Exception:
            await self.close()
            raise
        return self

    async def close(self) -> None:
        """Wait for background writes, then release every resource."""
        for expander in self._expanders:
            await expander.wait_for_pending_writes()
        self._expanders.clear()

        if self.judge is not None:
            await self.judge.close()
            self.judge = None
        if self.store is not None:
            await self.store.close()
            self.store = None
        if self.session is not None:
            await self.session.close()
            self.session = None

    async def __aenter__(self) -> 'NewsRuntime':
        return await self.open()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def generator(self):
        return self.container.get('generator', session=self.session)

    def orchestrator(self) -> RefreshOrchestrator:
        return RefreshOrchestrator(
            self.store,
            self.generator(),
            self.container.get('image_resolver', session=self.session, judge=self.judge),
            video_matcher=self.container.get('video_matcher', session=self.session, judge=self.judge),
            settings=self.config.pipeline,
        )

    def cleaner(self) -> DuplicateCleaner:
        """
        Raises:
            ConfigurationError: If no judge backend is configured
        """
        if self.judge is None:
            raise ConfigurationError("JUDGE_API_KEY or SIMILARITY_PROXY_URL")
        return DuplicateCleaner(self.store, self.judge, batch_size=self.config.pipeline.dedup_batch_size)

    def expander(self) -> ContentExpander:
        expander = ContentExpander(
            self.generator(),
            store=self.store,
            body_cache_min_words=self.config.pipeline.body_cache_min_words,
        )
        self._expanders.append(expander)
        return expander
