#!/usr/bin/env python3
"""
News routes: refresh trigger, duplicate sweep, body updates and the read path.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from core.exceptions import NewsPipelineError, StorageError
from core.models.news import Category
from core.runtime import NewsRuntime
from core.sample_news import get_sample_news
from ..dependencies import (
    ANY_METHODS,
    error_response,
    get_app_container,
    open_runtime,
    read_json_body,
    runtime_dependency,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["news"])

NEWS_TABLES = {category.table_name: category for category in Category}
NEWS_PAGE_SIZE = 15


@router.api_route("/news-scheduler", methods=ANY_METHODS)
async def run_news_scheduler(runtime: NewsRuntime = Depends(runtime_dependency)) -> dict:
    """Run one refresh cycle over every category."""
    summary = await runtime.orchestrator().refresh_all()
    return summary.to_dict()


@router.api_route("/duplicate-news-cleaner", methods=ANY_METHODS)
async def run_duplicate_cleaner(request: Request) -> dict:
    """Sweep every category for duplicates."""
    runtime = await open_runtime(request, prefer_proxy_judge=True)
    try:
        results = await runtime.cleaner().clean_all()
    finally:
        await runtime.close()
    return {"status": "done", "results": [result.to_dict() for result in results]}


@router.post("/update-news-body")
async def update_news_body(request: Request):
    """Persist an expanded body for one record."""
    payload = await read_json_body(request)
    if (not isinstance(payload, dict)
            or not isinstance(payload.get('table'), str)
            or payload.get('id') in (None, '')
            or not isinstance(payload.get('news_body'), str)):
        return JSONResponse(status_code=400, content={"success": False, "error": "Invalid request payload"})

    category = NEWS_TABLES.get(payload['table'])
    if category is None:
        return JSONResponse(status_code=400, content={"success": False, "error": "Invalid table"})

    runtime = await open_runtime(request)
    try:
        updated = await runtime.store.update_body(category, str(payload['id']), payload['news_body'])
    except StorageError as e:
        return JSONResponse(status_code=500, content={"success": False, "error": e.message})
    finally:
        await runtime.close()

    return {"success": True, "updated": updated}


@router.get("/news/{category}")
async def get_news(category: str, request: Request):
    """
    Latest records of a category.

    Falls back to built-in sample content when the store is unconfigured,
    failing or empty.
    """
    try:
        parsed = Category.parse(category)
    except ValueError:
        return error_response(f"Unknown category: {category}", 404)

    records = []
    config = get_app_container(request).get('config')
    if config.database.is_configured():
        try:
            runtime = await open_runtime(request)
            try:
                records = await runtime.store.latest(parsed, NEWS_PAGE_SIZE)
            finally:
                await runtime.close()
        except NewsPipelineError as e:
            logger.warning(f"Serving sample news for {parsed.value}: {e.message}")

    source = "store"
    if not records:
        records = get_sample_news(parsed)
        source = "sample"

    return {"category": parsed.value, "source": source, "news": [record.to_dict() for record in records]}
