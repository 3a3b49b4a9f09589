#!/usr/bin/env python3
"""Liveness and integration status."""

from fastapi import APIRouter, Request

from core.config import integration_status
from ..dependencies import get_app_container

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict:
    config = get_app_container(request).get('config')
    return {"status": "ok", "integrations": integration_status(config)}
