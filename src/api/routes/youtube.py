#!/usr/bin/env python3
"""
First-result video search.
"""

import logging

from fastapi import APIRouter, Request

from core.exceptions import ConfigurationError, NewsPipelineError
from ..dependencies import ANY_METHODS, error_response, get_app_container, read_json_body

logger = logging.getLogger(__name__)

router = APIRouter(tags=["video"])

GENERIC_ERROR = "Oops...something went wrong. Please check back later."


async def _read_query(request: Request) -> str:
    """`q` from a JSON body, a form body, or the query string."""
    content_type = request.headers.get('content-type', '')
    q = None
    if 'application/json' in content_type:
        body = await read_json_body(request)
        if isinstance(body, dict):
            q = body.get('q')
    elif 'form' in content_type:
        form = await request.form()
        q = form.get('q')
    if not q:
        q = request.query_params.get('q')
    return str(q).strip() if q else ''


@router.api_route("/youtube-search-first", methods=ANY_METHODS)
async def youtube_search_first(request: Request):
    q = await _read_query(request)
    if not q:
        return error_response("Missing q", 400)

    container = get_app_container(request)
    async with container.get('http_session') as session:
        client = container.get('youtube_client', session=session)
        try:
            video = await client.search_first(q)
        except ConfigurationError:
            return error_response("Server misconfiguration: missing YOUTUBE_API_KEY", 500)
        except NewsPipelineError as e:
            logger.error(f"Video search failed for '{q}': {e.message}")
            return error_response(GENERIC_ERROR, 500)

    if video is None:
        return error_response("Unable to find the video for news", 404)
    return {"videoId": video.video_id}
