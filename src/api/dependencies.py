#!/usr/bin/env python3
"""
Shared helpers for API routes.
"""

from typing import Any, AsyncIterator

from fastapi import Request
from fastapi.responses import JSONResponse

from core.container import Container
from core.runtime import NewsRuntime

ANY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def get_app_container(request: Request) -> Container:
    return request.app.state.container


def error_response(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def read_json_body(request: Request) -> Any:
    """Parsed JSON body, or None when the body is empty or not JSON."""
    body = await request.body()
    if not body:
        return None
    try:
        return await request.json()
    except ValueError:
        return None


async def open_runtime(request: Request, with_store: bool = True,
                       prefer_proxy_judge: bool = False) -> NewsRuntime:
    """
    Open a per-request runtime.

    Raises:
        ConfigurationError: If the store is requested but not configured
    """
    runtime = NewsRuntime(get_app_container(request), with_store=with_store,
                          prefer_proxy_judge=prefer_proxy_judge)
    return await runtime.open()


async def runtime_dependency(request: Request) -> AsyncIterator[NewsRuntime]:
    """FastAPI dependency yielding an opened runtime with a store."""
    runtime = await open_runtime(request)
    try:
        yield runtime
    finally:
        await runtime.close()

