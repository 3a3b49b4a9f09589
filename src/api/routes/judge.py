#!/usr/bin/env python3
"""
Generic single-turn judge call with a caller-supplied key.
"""

from fastapi import APIRouter, Request

from core.exceptions import JudgeUnavailableError
from integrations.judge_client import OpenAICompatibleJudge
from ..dependencies import ANY_METHODS, error_response, get_app_container, read_json_body

router = APIRouter(tags=["judge"])

INVALID_PAYLOAD = "Invalid payload: requires 'system','user','api_key' strings"


@router.api_route("/groq-call", methods=ANY_METHODS)
async def groq_call(request: Request):
    if request.method != "POST":
        return error_response("Method not allowed", 405)

    payload = await read_json_body(request)
    if not isinstance(payload, dict) or not all(
            isinstance(payload.get(key), str) for key in ('system', 'user', 'api_key')):
        return error_response(INVALID_PAYLOAD, 400)

    integrations = get_app_container(request).get('config').integrations
    judge = OpenAICompatibleJudge(
        api_key=payload['api_key'],
        base_url=integrations.judge_base_url,
        model=integrations.judge_model,
    )
    try:
        content = await judge.complete(payload['system'], payload['user'], retries=1, retry_delay=2.0)
    except JudgeUnavailableError as e:
        return error_response(e.message, 500)
    finally:
        await judge.close()

    return {"content": content}
