#!/usr/bin/env python3
"""
Web push routes: subscription registration and the daily newsletter.
"""

import logging

from fastapi import APIRouter, Request

from core.exceptions import StorageError, ValidationError
from integrations.push_notifier import parse_subscription
from ..dependencies import ANY_METHODS, error_response, get_app_container, open_runtime, read_json_body

logger = logging.getLogger(__name__)

router = APIRouter(tags=["push"])


@router.api_route("/push-subscribe", methods=ANY_METHODS)
async def push_subscribe(request: Request):
    if request.method != "POST":
        return error_response("Method not allowed", 405)

    try:
        subscription = parse_subscription(await read_json_body(request))
    except ValidationError:
        return error_response("Invalid subscription", 400)
    if not subscription.user_agent:
        subscription.user_agent = request.headers.get('user-agent')

    runtime = await open_runtime(request)
    try:
        await runtime.store.upsert_subscription(subscription)
    except StorageError as e:
        return error_response(e.message, 500)
    finally:
        await runtime.close()

    return {"ok": True}


@router.api_route("/push-newsletter", methods=ANY_METHODS)
async def push_newsletter(request: Request):
    """Send the latest item of each category to every subscriber."""
    notifier = get_app_container(request).get('push_notifier')

    runtime = await open_runtime(request)
    try:
        result = await notifier.send_newsletter(runtime.store)
    finally:
        await runtime.close()

    return result.to_dict()
