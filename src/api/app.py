#!/usr/bin/env python3
"""
FastAPI application exposing the news pipeline over HTTP.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.container import Container, get_container
from core.exceptions import NewsPipelineError
from .routes import content, health, judge, news, push, youtube

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None) -> FastAPI:
    """
    Build the application.

    Args:
        container: Service container; the global one when omitted

    Returns:
        Configured FastAPI app
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config = app.state.container.get('config')
        logger.info(f"News API starting (environment={config.environment})")
        yield
        logger.info("News API stopped")

    app = FastAPI(title="Paparazzi News API", version="1.0.0", lifespan=lifespan)
    app.state.container = container or get_container()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(NewsPipelineError)
    async def pipeline_error_handler(request: Request, exc: NewsPipelineError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.to_dict()}")
        return JSONResponse(status_code=500, content={"error": exc.message})

    app.include_router(news.router)
    app.include_router(content.router)
    app.include_router(youtube.router)
    app.include_router(push.router)
    app.include_router(judge.router)
    app.include_router(health.router)

    return app
