#!/usr/bin/env python3
"""
Streamed long-form content for a news item (server-sent events).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import StreamingResponse

from core.exceptions import ConfigurationError
from core.models.events import to_sse
from core.models.news import Category
from ..dependencies import error_response, open_runtime

logger = logging.getLogger(__name__)

router = APIRouter(tags=["content"])

TRUTHY = ('1', 'true', 'yes')


@router.get("/stream-news-content")
async def stream_news_content(request: Request,
                              category: Optional[str] = None,
                              person_name: Optional[str] = Query(None, alias="personName"),
                              news_title: Optional[str] = Query(None, alias="newsTitle"),
                              record_id: Optional[str] = Query(None, alias="id"),
                              force: Optional[str] = None):
    if not category or not person_name or not news_title:
        return error_response("Missing required parameters: category, personName, newsTitle", 400)
    try:
        parsed = Category.parse(category)
    except ValueError:
        return error_response(f"Unknown category: {category}", 400)

    config = request.app.state.container.get('config')
    try:
        runtime = await open_runtime(request, with_store=config.database.is_configured())
    except ConfigurationError as e:
        logger.warning(f"Streaming without store: {e.message}")
        runtime = await open_runtime(request, with_store=False)

    expander = runtime.expander()

    async def event_stream():
        try:
            async for event in expander.expand(parsed, person_name, news_title, record_id=record_id,
                                               force=(force or '').lower() in TRUTHY):
                yield to_sse(event)
        finally:
            await runtime.close()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
